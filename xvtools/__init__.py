"""A small Unix-style userland and models of a teaching kernel's formats, allocator and paging."""

__version__ = "0.1.0"