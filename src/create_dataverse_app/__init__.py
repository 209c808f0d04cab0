"""create-dataverse-app - scaffold a new Dataverse app from the template repository."""

__version__ = "0.1.0"
