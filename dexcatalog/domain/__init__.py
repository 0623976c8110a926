"""Domain Layer: entities, value objects, ports, events and errors.

Has no dependency on the infrastructure layer or third-party libraries.
"""
