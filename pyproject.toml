[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "neomail"
version = "0.1.1"
description = "Email primitives for SMTP services: mail parsing, reply messages, SPF and DMARC checks"
requires-python = ">=3.10"
keywords = ["smtp", "email", "mail", "spf", "dmarc"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Topic :: Communications :: Email :: Filters",
]
dependencies = [
    "dnspython",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["neomail"]

[tool.pytest.ini_options]
addopts = "-ra"
