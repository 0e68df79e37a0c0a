from .mputils import *
from .config_parser import *
from .histutils import *
