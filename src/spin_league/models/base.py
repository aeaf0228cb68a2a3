"""
Declarative base shared by the league models.

Every model imports Base from here so that ``Database.create_tables`` sees
the complete metadata.
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
