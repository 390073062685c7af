# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from matchboard.models.bracket import EventBracket  # noqa: F401
from matchboard.models.event import Event  # noqa: F401
from matchboard.models.league import League  # noqa: F401
from matchboard.models.match import Match  # noqa: F401
