from app.models.user import User
from app.models.arena import Arena
from app.models.court import Court
from app.models.reservation import Reservation
from app.models.match import Match, MatchPresence, MatchPlayerStat

# This makes the models directory a Python package and ensures all models are loaded
