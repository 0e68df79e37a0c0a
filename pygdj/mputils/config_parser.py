import os

import yaml

from pygdj.mputils.mputils import MPBase, pwarning, perror, comma_sep_to_list, math_string_to_num


class ConfigParser(MPBase):
	"""
	Flat key/value configuration in the spirit of a ROOT TEnv.

	Sources: a dict, a YAML file (.yaml/.yml) or a TEnv style text file with
	'KEY: value' lines; '#' starts a comment line.
	"""
	_true_strings = ['1', 'TRUE', 'YES', 'ON', 'T', 'Y']
	_false_strings = ['0', 'FALSE', 'NO', 'OFF', 'F', 'N', '']

	def __init__(self, **kwargs):
		self.configure_from_args(config_file=None, config_dict=None)
		super(ConfigParser, self).__init__(**kwargs)
		self._config_vals = {}
		self.is_valid = False
		if self.config_file is not None:
			self.is_valid = self.init(self.config_file)
		elif self.config_dict is not None:
			self.is_valid = self.init(self.config_dict)

	def init(self, source):
		self.clean()
		if isinstance(source, ConfigParser):
			self._config_vals = dict(source.get_config_map())
			self.config_file = source.config_file
			return True
		if isinstance(source, dict):
			for k in source:
				self._config_vals[str(k)] = source[k]
			return True
		self.config_file = str(source)
		if not os.path.isfile(self.config_file):
			perror('ConfigParser: given config file \'{}\' is invalid. init failed.'.format(self.config_file))
			self.clean()
			return False
		if os.path.splitext(self.config_file)[1].lower() in ['.yaml', '.yml']:
			return self._read_yaml(self.config_file)
		return self._read_tenv(self.config_file)

	def _read_yaml(self, fname):
		with open(fname, 'r') as stream:
			try:
				config = yaml.safe_load(stream)
			except yaml.YAMLError as e:
				perror('ConfigParser: unable to parse \'{}\': {}'.format(fname, e))
				self.clean()
				return False
		if config is None:
			config = {}
		if not isinstance(config, dict):
			perror('ConfigParser: \'{}\' does not hold a flat key/value mapping'.format(fname))
			self.clean()
			return False
		for k in config:
			self._config_vals[str(k)] = config[k]
		return True

	def _read_tenv(self, fname):
		with open(fname, 'r') as f:
			for iline, line in enumerate(f):
				_s = line.strip()
				if len(_s) == 0 or _s.startswith('#'):
					continue
				if ':' not in _s:
					perror('ConfigParser: \'{}\' line {} \'{}\' is not of the form KEY: value'.format(fname, iline + 1, _s))
					self.clean()
					return False
				key, val = _s.split(':', 1)
				key = key.strip()
				if len(key) == 0:
					perror('ConfigParser: \'{}\' line {} has an empty key'.format(fname, iline + 1))
					self.clean()
					return False
				self._config_vals[key] = val.strip()
		return True

	def contains_param(self, key):
		if key not in self._config_vals:
			self.debug('param \'{}\' not found in config \'{}\''.format(key, self.config_file))
			return False
		return True

	def contains_params(self, keys):
		missing = [k for k in keys if k not in self._config_vals]
		for k in missing:
			perror('ConfigParser: missing required parameter \'{}\' (config \'{}\')'.format(k, self.config_file))
		return len(missing) == 0

	def get_value(self, key, default=None):
		return self._config_vals.get(key, default)

	def get_bool(self, key, default=None):
		val = self._config_vals.get(key, default)
		if val is None or isinstance(val, bool):
			return val
		if isinstance(val, (int, float)):
			return val != 0
		_s = str(val).strip().upper()
		if _s in self._true_strings:
			return True
		if _s in self._false_strings:
			return False
		perror('ConfigParser: value \'{}\' of \'{}\' is not a boolean'.format(val, key))
		return None

	def get_int(self, key, default=None):
		val = self._config_vals.get(key, default)
		if val is None:
			return None
		if isinstance(val, int):
			return int(val)
		try:
			_f = float(val)
		except (TypeError, ValueError):
			perror('ConfigParser: value \'{}\' of \'{}\' is not an integer'.format(val, key))
			return None
		if not _f.is_integer():
			perror('ConfigParser: value \'{}\' of \'{}\' is not an integer'.format(val, key))
			return None
		return int(_f)

	def get_float(self, key, default=None):
		val = self._config_vals.get(key, default)
		if val is None:
			return None
		try:
			return math_string_to_num(val)
		except (ValueError, ZeroDivisionError):
			perror('ConfigParser: value \'{}\' of \'{}\' is not a number'.format(val, key))
			return None

	def get_list(self, key, default=None, numeric=True):
		val = self._config_vals.get(key, default)
		if val is None:
			return None
		if isinstance(val, (list, tuple)):
			items = list(val)
		elif ',' in str(val):
			items = comma_sep_to_list(val)
		else:
			items = str(val).split()
		if not numeric:
			return [str(i) for i in items]
		try:
			return [math_string_to_num(i) for i in items]
		except (ValueError, ZeroDivisionError):
			perror('ConfigParser: value \'{}\' of \'{}\' is not a list of numbers'.format(val, key))
			return None

	def set_value(self, key, val):
		if key in self._config_vals:
			pwarning('ConfigParser: set_value overrides \'{}\' with new value \'{}\''.format(key, val))
		self._config_vals[key] = val

	def get_config_map(self):
		return self._config_vals

	def check_config_params(self, other, keys):
		retval = True
		for k in keys:
			if not self.contains_param(k) or not other.contains_param(k):
				perror('ConfigParser: parameter \'{}\' missing from one of the configs'.format(k))
				retval = False
				continue
			v0 = str(self.get_value(k)).replace(' ', '')
			v1 = str(other.get_value(k)).replace(' ', '')
			if v0 != v1:
				perror('ConfigParser: parameter \'{}\' differs, \'{}\' vs. \'{}\''.format(k, v0, v1))
				retval = False
		return retval

	def clean(self):
		self.config_file = None
		self._config_vals = {}
