from typing import Optional

from aicalamba.config import Settings
from api.backend import CalendarBackend
from storage.image_cache import LastImageCache

# Last successful screenshot, served by /image/last for debugging
image_cache = LastImageCache()

# Global instances initialized at startup
settings: Optional[Settings] = None
backend: Optional[CalendarBackend] = None
