"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the catalog layer to the outside world (the HTTP catalog, the
clock, configuration sources) by implementing the interfaces defined in
the domain layer. Also includes the resilience services.
"""
