import math
import sys

import numpy as np


class ColorS(object):
	def str(*args):
		_s = ' '.join([str(s) for s in args])
		return _s
	def red(*s):
		return '\033[91m{}\033[00m'.format(ColorS.str(*s))
	def green(*s):
		return '\033[92m{}\033[00m'.format(ColorS.str(*s))
	def yellow(*s):
		return '\033[93m{}\033[00m'.format(ColorS.str(*s))
	def purple(*s):
		return '\033[95m{}\033[00m'.format(ColorS.str(*s))
	def no_color(*s):
		return '\033[00m{}\033[00m'.format(ColorS.str(*s))


def pwarning(*args, file=sys.stderr):
	print(ColorS.yellow('[w]', *args), file=file)

def pdebug(*args, file=sys.stderr):
	print(ColorS.purple('[d]', *args), file=file)

def perror(*args, file=sys.stderr):
	print(ColorS.red('[e]', *args), file=file)

def pinfo(*args, file=sys.stdout):
	print(ColorS.green('[i]', *args), file=file)


def linbins(xmin, xmax, nbins):
	lspace = np.linspace(xmin, xmax, nbins+1)
	# pin the end points, the flattened axes are compared edge by edge
	lspace[0] = xmin
	lspace[-1] = xmax
	return lspace


def bin_pos_from_value(value, edges):
	"""0-based position of the bin holding value, lower edge inclusive; -1 outside the edges."""
	if len(edges) < 2:
		return -1
	if value < edges[0] or value >= edges[-1]:
		return -1
	return int(np.searchsorted(edges, value, side='right')) - 1


def comma_sep_to_list(s):
	return [_s.strip() for _s in str(s).split(',') if len(_s.strip()) > 0]


def math_string_to_num(s):
	"""Numbers, fractions and factors of pi, e.g. '0.5', '1/3', 'pi', '3pi/4'."""
	_s = str(s).strip().upper()
	val = 1.0
	if 'PI' in _s:
		val *= math.pi
		_s = _s.replace('PI', '', 1)
		if len(_s) == 0:
			return val
		if _s in ['-', '+']:
			_s = _s + '1'
	if '/' in _s:
		num, denom = _s.split('/', 1)
		if num in ['', '-', '+']:
			num = num + '1'
		val *= float(num) / float(denom)
	else:
		val *= float(_s)
	return val


def good_binning(config_name, n_max_bins, n_bins, bin_type):
	if n_bins > n_max_bins:
		perror('config \'{}\' contains {} of size \'{}\', greater than max val \'{}\'. Please fix.'.format(config_name, bin_type, n_bins, n_max_bins))
		return False
	if n_bins <= 0:
		perror('config \'{}\' contains {} of size \'{}\', must be positive. Please fix.'.format(config_name, bin_type, n_bins))
		return False
	return True


def is_iterable(o):
	result = False
	try:
		tmp_iterator = iter(o)
		result = True
	except TypeError as te:
		result = False
	return result


class UniqueString(object):
	locked_strings = []

	def _unique(base=None):
		i = 0
		retstring = base
		if retstring is None:
			retstring = 'UniqueString_0'
		else:
			retstring = '{}_{}'.format(str(base), i)
		while retstring in UniqueString.locked_strings:
			i = i + 1
			retstring = '{}_{}'.format(str(base), i)
		UniqueString.locked_strings.append(retstring)
		return retstring

	def str(base=None):
		return UniqueString._unique(base)


class MPBase(object):
	_indent = 0
	def __init__(self, **kwargs):
		self.configure_from_args(name=None, debug_level=0)
		for key, value in kwargs.items():
			self.__setattr__(key, value)
		if self.name is None:
			self.name = UniqueString.str(type(self).__name__)

	def configure_from_args(self, **kwargs):
		for key, value in kwargs.items():
			self.__setattr__(key, value)

	def debug(self, *args, level=1):
		if self.debug_level is not None and self.debug_level >= level:
			pdebug('{}:'.format(self.name), *args)

	def __str__(self):
		s = []
		variables = self.__dict__.keys()
		MPBase._indent = MPBase._indent + 1
		_sindent = ''.join(['   ' for i in range(MPBase._indent)])
		for v in variables:
			_s = '{} ({}) = {}'.format(v, type(self.__dict__[v]), self.__dict__[v])
			_descr_method = getattr(self.__dict__[v], 'description', None)
			if callable(_descr_method):
				_s = '{} (+description) = {} {}'.format(v, type(self.__dict__[v]), _descr_method())
			if len(_s) > 500:
				if is_iterable(self.__dict__[v]):
					_s = '{} ({}) = {}'.format(v, len(self.__dict__[v]), self.__dict__[v])
			if '\n' not in _s:
				_st = (_s[:500] + '..') if len(_s) > 500 else _s
			else:
				_st = _s
			s.append(_st)
		if MPBase._indent > 1:
			sret = "..\n{} {} ({}) with \n{} -  {}".format(_sindent, self.name, '', _sindent, '\n{} -  '.format(_sindent).join(s))
		else:
			sret = "\n{}[i] {} ({}) with \n{} -  {}".format(_sindent, self.name, type(self), _sindent, '\n{} -  '.format(_sindent).join(s))
		MPBase._indent = MPBase._indent - 1
		return sret

	def description(self):
		return self.__str__()
