from .catalog import *
from .confirm import *
from .selectors import *
