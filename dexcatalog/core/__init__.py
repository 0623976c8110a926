"""Core Application Layer: Orchestrates catalog use cases.

Connects the domain layer with the infrastructure layer through interfaces.
Contains the entity factory, batch coordinator, query pipeline and the
CatalogClient facade.
"""
