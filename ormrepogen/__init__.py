"""ormrepogen: generate SQLAlchemy repository modules for declared classes.

Usage:
    ormrepogen -t User,Order models/
"""

__version__ = "0.1.0"
