[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mpuheap"
version = "0.1.0"
description = "Sub-region heap allocator, MPU access masks, fault reports and a command shell for a small Cortex-M memory model"
requires-python = ">=3.10"
dependencies = []
keywords = ["rtos", "mpu", "heap", "allocator", "cortex-m", "embedded", "shell"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mpuheap = "mpuheap.shell:main"

[tool.hatch.build.targets.wheel]
packages = ["mpuheap"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
