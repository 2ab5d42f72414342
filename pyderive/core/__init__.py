from . import const
from . import feedback
from . import panic
