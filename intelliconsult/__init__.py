"""IntelliConsult API: appointment booking, consultation and prescription service."""

__version__ = "1.0.0"
