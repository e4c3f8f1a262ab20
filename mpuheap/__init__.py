"""Sub-region heap allocator, MPU access masks, fault reports and a command shell."""

__version__ = "0.1.0"