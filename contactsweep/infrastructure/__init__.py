"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (the Voyager API, the local
file system, the console) by implementing the interfaces defined in the
domain layer. Also includes configuration, logging and resilience services.
"""
