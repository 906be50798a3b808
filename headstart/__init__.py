"""HeadStart: AI-generated personal-growth content in a mobile-styled web app."""

__version__ = "0.1.0"
