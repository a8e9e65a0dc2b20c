"""Small toolkit utilities: lists, object pools, ring buffers, speed meters, local time and MySQL access."""

__version__ = "0.1.0"
__all__ = [
    "linked_list",
    "resource_pool",
    "speed",
    "local_time",
    "ring_buffer",
    "sql_connection",
]