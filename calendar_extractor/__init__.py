"""
Marked Calendar Extractor

Finds hand-marked (red) days on a photographed monthly calendar, reads them
with OCR, and rebuilds the marked days as dated events for an .ics file.
"""

__version__ = "1.0.0"
