"""
monday.com PDF relay (Lambda webhook or local server)

Where: AWS Lambda via Function URL (monday.com automation/webhook target).
What:  Collect an item's attachments, keep the PDFs, re-upload each one to a
       file column, splitting multiple PDFs across "[iofN]" items.
Why:   Lets one upload carrying several PDFs fan out into one item per PDF.
"""

__version__ = "2.0.0"

__all__ = [
    "assets",
    "config",
    "credentials",
    "errors",
    "handler",
    "log",
    "monday",
    "naming",
    "relay",
    "retry",
    "server",
]
