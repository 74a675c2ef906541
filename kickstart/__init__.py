"""kickstart -- interactive scaffolding for JavaScript / TypeScript projects."""

__version__ = "0.1.0"
