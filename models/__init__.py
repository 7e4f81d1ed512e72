"""
Models Package

Importing the package registers every table on Base.metadata,
so create_all and the table check in db.py see all of them.
"""

from models.base import Base
from models.item import Item
from models.composition_edge import CompositionEdge
from models.media_reference import MediaReference
from models.cart_line import CartLine
