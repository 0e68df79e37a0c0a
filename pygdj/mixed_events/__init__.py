from .bin_flattener import *
from .mix_machine import *
from .purity import *
