# Import all models here for Alembic to discover them
from laneboard.db.base import Base
from laneboard.models.user import User
from laneboard.models.board import Board, BoardMembership, BoardUserRole
from laneboard.models.swimlane import Swimlane
from laneboard.models.card import Card, card_labels
from laneboard.models.label import Label, LABEL_COLORS
