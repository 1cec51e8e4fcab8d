"""Sample sources feeding the tracker: serial devices and recorded files."""
