"""
Infrastructure Layer

Concrete generation clients and storage backends used by the use cases.
"""
