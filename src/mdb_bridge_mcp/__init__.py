"""Talk to MDB cashless peripherals over RS-232 or through the MDB daemon."""

__version__ = "0.1.0"
