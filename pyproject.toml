[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvtools"
version = "0.1.0"
description = "A small Unix-style userland (shell, grep, wc, cat, ls and friends) plus models of a teaching kernel's formats, allocator and paging"
requires-python = ">=3.10"
dependencies = []
keywords = ["shell", "grep", "wc", "coreutils", "elf", "virtio", "page-table", "malloc", "teaching"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
    "Topic :: Utilities",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xv-sh = "xvtools.shell:main"
xv-grep = "xvtools.grep:main"
xv-wc = "xvtools.wc:main"
xv-cat = "xvtools.coreutils:cat_main"
xv-echo = "xvtools.coreutils:echo_main"
xv-kill = "xvtools.coreutils:kill_main"
xv-ln = "xvtools.coreutils:ln_main"
xv-ls = "xvtools.coreutils:ls_main"
xv-mkdir = "xvtools.coreutils:mkdir_main"
xv-rm = "xvtools.coreutils:rm_main"

[tool.hatch.build.targets.wheel]
packages = ["xvtools"]

[tool.pytest.ini_options]
addopts = "-ra"
