import operator

import numpy as np

from pygdj.mputils.mputils import MPBase, perror, linbins, bin_pos_from_value


class BinFlattener(MPBase):
	"""
	Maps two binning axes onto one contiguous 1D axis and back.

	The global index runs over bin1 in the outer loop and bin2 in the inner
	loop: global = bin1 * n_bins2 + bin2. Histogram consumers compute the
	same index on their own, so the ordering must not change.

	Each axis is given either as a bin count or as a list of bin edges
	(N+1 edges for N bins). Value based lookups need edges on both axes.
	"""
	n_max_bins = 1000

	def __init__(self, **kwargs):
		self.configure_from_args(bins1=None, bins2=None)
		super(BinFlattener, self).__init__(**kwargs)
		self._reset()
		if self.bins1 is not None and self.bins2 is not None:
			if not self.init(self.name, self.bins1, self.bins2):
				perror('BinFlattener: initialization failure for \'{}\''.format(kwargs.get('name')))

	def _reset(self):
		self._is_init = False
		self._flattener_name = ''
		self._bin_set1 = None
		self._bin_set2 = None
		self._n_bins1 = -1
		self._n_bins2 = -1
		self._n_bins_global = -1
		self._bin_set_global = []
		self._low_val = 0.
		self._hi_val = 1.
		self._global_to_bin1 = None
		self._global_to_bin2 = None
		self._bin12_to_global = None

	@staticmethod
	def _n_bins_and_edges(bins, axis):
		if isinstance(bins, (int, np.integer)) and not isinstance(bins, bool):
			return int(bins), None
		try:
			edges = np.asarray(bins, dtype=float)
		except (TypeError, ValueError):
			perror('BinFlattener: axis {} binning \'{}\' is neither a bin count nor a list of edges'.format(axis, bins))
			return None, None
		if edges.ndim != 1:
			perror('BinFlattener: axis {} edges must be one dimensional'.format(axis))
			return None, None
		if not np.all(np.isfinite(edges)) or not np.all(np.diff(edges) > 0):
			perror('BinFlattener: axis {} edges {} are not finite and strictly increasing'.format(axis, list(edges)))
			return None, None
		return edges.size - 1, edges

	@staticmethod
	def _as_index(pos):
		if isinstance(pos, bool):
			return None
		try:
			return operator.index(pos)
		except TypeError:
			return None

	def init(self, name, bins1, bins2):
		self.clean()
		self._flattener_name = name
		for axis, bins in [(1, bins1), (2, bins2)]:
			n_bins, edges = self._n_bins_and_edges(bins, axis)
			if n_bins is None:
				self.clean()
				return False
			if n_bins > self.n_max_bins:
				perror('BinFlattener init: n_bins{} \'{}\' is greater than n_max_bins \'{}\'. clean and return False'.format(axis, n_bins, self.n_max_bins))
				self.clean()
				return False
			if n_bins <= 0:
				perror('BinFlattener init: n_bins{} \'{}\' is less-than-or-equal-to zero. clean and return False'.format(axis, n_bins))
				self.clean()
				return False
			if axis == 1:
				self._n_bins1, self._bin_set1 = n_bins, edges
			else:
				self._n_bins2, self._bin_set2 = n_bins, edges
		self._low_val = 0.
		self._hi_val = 1.
		self._is_init = True
		self.debug('initialized with {} x {} bins'.format(self._n_bins1, self._n_bins2))
		return self._is_init

	def get_flattened_bins(self, low_val=0.0, hi_val=1.0):
		if not self._is_init:
			perror('BinFlattener.get_flattened_bins: called w/o initializing. return empty list')
			return []
		self._low_val = low_val
		self._hi_val = hi_val
		n_bins_global = self._n_bins1 * self._n_bins2
		flattened = linbins(low_val, hi_val, n_bins_global)
		# row major: bin1 outer, bin2 inner
		self._global_to_bin1 = np.repeat(np.arange(self._n_bins1), self._n_bins2)
		self._global_to_bin2 = np.tile(np.arange(self._n_bins2), self._n_bins1)
		self._bin12_to_global = np.arange(n_bins_global).reshape(self._n_bins1, self._n_bins2)
		self._n_bins_global = n_bins_global
		self._bin_set_global = [float(x) for x in flattened]
		return list(self._bin_set_global)

	def _check_global(self, caller, global_pos):
		if not self._is_init:
			perror('BinFlattener.{}: called w/o initializing. return -1'.format(caller))
			return False
		if self._global_to_bin1 is None:
			perror('BinFlattener.{}: called before get_flattened_bins. return -1'.format(caller))
			return False
		if self._as_index(global_pos) is None:
			perror('BinFlattener.{}: given global_pos \'{}\' is not an integer. return -1'.format(caller, global_pos))
			return False
		if global_pos < 0 or global_pos >= self._n_bins_global:
			perror('BinFlattener.{}: given global_pos \'{}\' is outside accepted range (inclusive) \'0-{}\'. return -1'.format(caller, global_pos, self._n_bins_global - 1))
			return False
		return True

	def get_bin1_pos_from_global(self, global_pos):
		if not self._check_global('get_bin1_pos_from_global', global_pos):
			return -1
		return int(self._global_to_bin1[global_pos])

	def get_bin2_pos_from_global(self, global_pos):
		if not self._check_global('get_bin2_pos_from_global', global_pos):
			return -1
		return int(self._global_to_bin2[global_pos])

	def get_global_from_bin12_pos(self, bin1_pos, bin2_pos):
		if not self._is_init:
			perror('BinFlattener.get_global_from_bin12_pos: called w/o initializing. return -1')
			return -1
		if self._bin12_to_global is None:
			perror('BinFlattener.get_global_from_bin12_pos: called before get_flattened_bins. return -1')
			return -1
		if self._as_index(bin1_pos) is None or self._as_index(bin2_pos) is None:
			perror('BinFlattener.get_global_from_bin12_pos: given bin positions \'{}\', \'{}\' are not integers. return -1'.format(bin1_pos, bin2_pos))
			return -1
		if bin1_pos < 0 or bin1_pos >= self._n_bins1:
			perror('BinFlattener.get_global_from_bin12_pos: given bin1_pos \'{}\' is outside accepted range (inclusive) \'0-{}\'. return -1'.format(bin1_pos, self._n_bins1 - 1))
			return -1
		if bin2_pos < 0 or bin2_pos >= self._n_bins2:
			perror('BinFlattener.get_global_from_bin12_pos: given bin2_pos \'{}\' is outside accepted range (inclusive) \'0-{}\'. return -1'.format(bin2_pos, self._n_bins2 - 1))
			return -1
		return int(self._bin12_to_global[bin1_pos, bin2_pos])

	def get_global_bin_center_from_bin12_val(self, bin1_val, bin2_val):
		"""Center of the flattened bin holding (bin1_val, bin2_val), or a value 1000 below the flattened axis on failure."""
		if not self._is_init:
			perror('BinFlattener.get_global_bin_center_from_bin12_val: called w/o initializing. return -1000.0')
			return -1000.
		if len(self._bin_set_global) == 0:
			perror('BinFlattener.get_global_bin_center_from_bin12_val: called w/o flattened bins. return -1000.0')
			return -1000.
		retval = self._bin_set_global[0] - 1000.
		if self._bin_set1 is None or self._bin_set2 is None:
			perror('BinFlattener.get_global_bin_center_from_bin12_val: needs bin edges on both axes, initialized with bin counts. return {}'.format(retval))
			return retval
		for axis, val, edges in [(1, bin1_val, self._bin_set1), (2, bin2_val, self._bin_set2)]:
			if val < edges[0] or val >= edges[-1]:
				perror('BinFlattener.get_global_bin_center_from_bin12_val: bin{}_val \'{}\' is outside given bin range of {}-{}. return {}'.format(axis, val, edges[0], edges[-1], retval))
				return retval
		bin1_pos = bin_pos_from_value(bin1_val, self._bin_set1)
		bin2_pos = bin_pos_from_value(bin2_val, self._bin_set2)
		global_pos = self.get_global_from_bin12_pos(bin1_pos, bin2_pos)
		return (self._bin_set_global[global_pos] + self._bin_set_global[global_pos + 1]) / 2.

	def clean(self):
		self._reset()

	@property
	def is_init(self):
		return self._is_init

	@property
	def flattener_name(self):
		return self._flattener_name

	@property
	def n_bins1(self):
		return self._n_bins1

	@property
	def n_bins2(self):
		return self._n_bins2

	@property
	def n_bins_global(self):
		return self._n_bins_global

	@property
	def flattened_bins(self):
		return list(self._bin_set_global)

	@property
	def bin_edges1(self):
		return self._bin_set1

	@property
	def bin_edges2(self):
		return self._bin_set2
