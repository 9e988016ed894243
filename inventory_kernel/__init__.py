"""
Inventory Kernel

Custom ID templates and the transactional item lifecycle of an inventory
system:
- Typed ID segments compiled into a positional span table
- Pure ID generation and positional edit validation
- Race-free sequence allocation under serializable isolation
- Optimistic concurrency on item updates
"""

__version__ = "0.1.0"
