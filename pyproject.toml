[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wizgate"
version = "0.1.0"
description = "LAN networking tools: a NetBIOS name responder, a multi-port TCP echo server and a UPnP gateway port-mapping client"
requires-python = ">=3.10"
dependencies = []
keywords = ["netbios", "upnp", "igd", "ssdp", "port-mapping", "echo-server", "md5", "networking"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
wizgate-netbios = "wizgate.netbios:main"
wizgate-echo = "wizgate.echo:main"
wizgate-upnp = "wizgate.upnp:main"

[tool.hatch.build.targets.wheel]
packages = ["wizgate"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
