"""ARES ServTec WhatsApp bot: ticket intake, notifications and follow-up."""

__version__ = "0.1.0"
