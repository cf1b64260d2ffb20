"""
SQL package for ormlet: the fluent query specification and the statement
generator.
"""

from ormlet.sql.options import Options
from ormlet.sql.template import SQLTemplate, Statement, bind_predicate

__all__ = ["Options", "SQLTemplate", "Statement", "bind_predicate"]
