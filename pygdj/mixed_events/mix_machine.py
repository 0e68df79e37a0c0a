import os
from enum import IntEnum

import numpy as np
import uproot

from pygdj.mputils.mputils import MPBase, perror, pwarning, good_binning
from pygdj.mputils.config_parser import ConfigParser
from pygdj.mputils.histutils import make_hist_1d, make_hist_2d, hist_add, hist_reset, hist_edges, hist_copy_contents, edges_match, write_object


class MixMode(IntEnum):
	NONE = 0
	INCLUSIVE = 1
	MULTI = 2


def to_mix_mode(mode):
	"""MixMode from a MixMode, its integer value, or a name such as 'MULTI' or 'MIXMODE2'; None if unknown."""
	if isinstance(mode, MixMode):
		return mode
	if isinstance(mode, (int, np.integer)) and not isinstance(mode, bool):
		try:
			return MixMode(int(mode))
		except ValueError:
			return None
	if isinstance(mode, str):
		_s = mode.strip().upper()
		if _s.startswith('MIXMODE'):
			_s = _s[len('MIXMODE'):]
		if _s.isdigit():
			return to_mix_mode(int(_s))
		if _s in MixMode.__members__:
			return MixMode[_s]
	return None


class MixMachine(MPBase):
	"""
	Parallel histograms (channels) of one observable with a shared binning,
	and the mixed event background subtraction that combines them.

		NONE      SUB = RAW
		INCLUSIVE SUB = RAW - MIX
		MULTI     MIXCORRECTED = MIX - MIXCORRECTION, SUB = RAW - MIXCORRECTED

	Truth channels are only booked when the config flags the sample as MC.
	"""
	n_max_bins = 2000

	data_channels = {
		MixMode.NONE 		: ['RAW', 'SUB'],
		MixMode.INCLUSIVE 	: ['RAW', 'MIX', 'SUB'],
		MixMode.MULTI 		: ['RAW', 'MIX', 'MIXCORRECTION', 'MIXCORRECTED', 'SUB'],
	}
	_truth_channels_common = ['TRUTH', 'TRUTHWITHRECOMATCH', 'TRUTHNORECOMATCH', 'RAWWITHTRUTHMATCH', 'RAWNOTRUTHMATCH']
	truth_channels = {
		MixMode.NONE 		: _truth_channels_common,
		MixMode.INCLUSIVE 	: _truth_channels_common,
		MixMode.MULTI 		: _truth_channels_common + ['SINGLETRUTHTOMULTIFAKE', 'SINGLETRUTHTOMULTIFAKEMIX'],
	}
	channel_aliases = {'TRUTHMATCHEDRECO' : 'TRUTHWITHRECOMATCH'}

	required_params = ['IS2DUNFOLD', 'ISMC', 'NBINSX', 'BINSX', 'TITLEX']
	required_params_2d = ['NBINSY', 'BINSY', 'TITLEY']

	def __init__(self, **kwargs):
		self.configure_from_args(mode=None, config=None)
		super(MixMachine, self).__init__(**kwargs)
		self._reset()
		if self.mode is not None and self.config is not None:
			if not self.init(self.name, self.mode, self.config):
				perror('MixMachine: initialization failure for \'{}\''.format(self.name))

	def _reset(self):
		self._is_init = False
		self._machine_name = ''
		self._mix_mode = MixMode.NONE
		self._is_2d_unfold = False
		self._is_mc = False
		self._n_bins_x = -1
		self._bins_x = []
		self._title_x = ''
		self._n_bins_y = -1
		self._bins_y = []
		self._title_y = ''
		self._channels = []
		self._channel_pos = {}
		self._hists = []
		self._tracking = set()

	def _read_axis(self, cfg, axis):
		config_name = cfg.config_file if cfg.config_file else self._machine_name
		n_bins = cfg.get_int('NBINS' + axis)
		if n_bins is None or not good_binning(config_name, self.n_max_bins, n_bins, 'NBINS' + axis):
			return None
		edges = cfg.get_list('BINS' + axis)
		if edges is None:
			return None
		if len(edges) != n_bins + 1:
			perror('MixMachine \'{}\': NBINS{} \'{}\' does not match the {} edges given in BINS{}'.format(self._machine_name, axis, n_bins, len(edges), axis))
			return None
		if not np.all(np.isfinite(edges)) or not np.all(np.diff(edges) > 0):
			perror('MixMachine \'{}\': BINS{} {} are not finite and strictly increasing'.format(self._machine_name, axis, edges))
			return None
		return [float(e) for e in edges]

	def init(self, name, mode, config):
		self.clean()
		self._machine_name = name
		mix_mode = to_mix_mode(mode)
		if mix_mode is None:
			perror('MixMachine \'{}\': unknown mix mode \'{}\', options are {}'.format(name, mode, [m.name for m in MixMode]))
			self.clean()
			return False
		self._mix_mode = mix_mode

		if isinstance(config, ConfigParser):
			cfg = config
		elif isinstance(config, dict):
			cfg = ConfigParser(config_dict=config, debug_level=self.debug_level)
		else:
			cfg = ConfigParser(config_file=config, debug_level=self.debug_level)
			if not cfg.is_valid:
				self.clean()
				return False

		if not cfg.contains_params(self.required_params):
			perror('MixMachine \'{}\': missing required parameters. init failed'.format(name))
			self.clean()
			return False
		self._is_2d_unfold = cfg.get_bool('IS2DUNFOLD')
		self._is_mc = cfg.get_bool('ISMC')
		if self._is_2d_unfold is None or self._is_mc is None:
			self.clean()
			return False
		if self._is_2d_unfold and not cfg.contains_params(self.required_params_2d):
			perror('MixMachine \'{}\': missing required parameters for 2D unfold. init failed'.format(name))
			self.clean()
			return False

		bins_x = self._read_axis(cfg, 'X')
		if bins_x is None:
			self.clean()
			return False
		self._bins_x = bins_x
		self._n_bins_x = len(bins_x) - 1
		self._title_x = str(cfg.get_value('TITLEX'))
		if self._is_2d_unfold:
			bins_y = self._read_axis(cfg, 'Y')
			if bins_y is None:
				self.clean()
				return False
			self._bins_y = bins_y
			self._n_bins_y = len(bins_y) - 1
			self._title_y = str(cfg.get_value('TITLEY'))

		self._channels = list(self.data_channels[self._mix_mode])
		if self._is_mc:
			self._channels.extend(self.truth_channels[self._mix_mode])
		self._channel_pos = {ch : i for i, ch in enumerate(self._channels)}
		for ch in self._channels:
			hname = self.hist_name(ch)
			if self._is_2d_unfold:
				h = make_hist_2d(hname, hname, self._bins_x, self._bins_y, self._title_x, self._title_y)
			else:
				h = make_hist_1d(hname, hname, self._bins_x, self._title_x)
			self._hists.append(h)

		self._is_init = True
		self.debug('initialized mode {} is_mc={} is_2d_unfold={} channels {}'.format(self._mix_mode.name, self._is_mc, self._is_2d_unfold, self._channels))
		return True

	def hist_name(self, channel):
		return '{}_MIXMODE{}_{}_h'.format(self._machine_name, int(self._mix_mode), channel)

	def _get_pos(self, channel, caller):
		if not self._is_init:
			perror('MixMachine.{}: called w/o initializing'.format(caller))
			return -1
		ch = str(channel).upper()
		ch = self.channel_aliases.get(ch, ch)
		pos = self._channel_pos.get(ch, -1)
		if pos < 0:
			perror('MixMachine.{}: \'{}\' channel \'{}\' is not valid for mode {} (is_mc={}). Available: {}'.format(caller, self._machine_name, channel, self._mix_mode.name, self._is_mc, ', '.join(self._channels)))
		return pos

	# filling
	def fill_x(self, fill_x, fill_weight, channel):
		pos = self._get_pos(channel, 'fill_x')
		if pos < 0:
			return False
		if self._is_2d_unfold:
			perror('MixMachine.fill_x: \'{}\' is 2D, use fill_xy'.format(self._machine_name))
			return False
		self._hists[pos].fill(fill_x, weight=fill_weight)
		return True

	def fill_xy(self, fill_x, fill_y, fill_weight, channel):
		pos = self._get_pos(channel, 'fill_xy')
		if pos < 0:
			return False
		if not self._is_2d_unfold:
			perror('MixMachine.fill_xy: \'{}\' is 1D, use fill_x'.format(self._machine_name))
			return False
		self._hists[pos].fill(fill_x, fill_y, weight=fill_weight)
		return True

	def fill_x_raw(self, fill_x, fill_weight):
		return self.fill_x(fill_x, fill_weight, 'RAW')

	def fill_x_mix(self, fill_x, fill_weight):
		return self.fill_x(fill_x, fill_weight, 'MIX')

	def fill_x_mix_correction(self, fill_x, fill_weight):
		return self.fill_x(fill_x, fill_weight, 'MIXCORRECTION')

	def fill_x_truth(self, fill_x, fill_weight):
		return self.fill_x(fill_x, fill_weight, 'TRUTH')

	def fill_x_truth_matched_reco(self, fill_x, fill_weight):
		return self.fill_x(fill_x, fill_weight, 'TRUTHMATCHEDRECO')

	def fill_x_single_truth_to_multi_fake(self, fill_x, fill_weight):
		return self.fill_x(fill_x, fill_weight, 'SINGLETRUTHTOMULTIFAKE')

	def fill_x_single_truth_to_multi_fake_mix(self, fill_x, fill_weight):
		return self.fill_x(fill_x, fill_weight, 'SINGLETRUTHTOMULTIFAKEMIX')

	def fill_xy_raw(self, fill_x, fill_y, fill_weight):
		return self.fill_xy(fill_x, fill_y, fill_weight, 'RAW')

	def fill_xy_mix(self, fill_x, fill_y, fill_weight):
		return self.fill_xy(fill_x, fill_y, fill_weight, 'MIX')

	def fill_xy_mix_correction(self, fill_x, fill_y, fill_weight):
		return self.fill_xy(fill_x, fill_y, fill_weight, 'MIXCORRECTION')

	def fill_xy_truth(self, fill_x, fill_y, fill_weight):
		return self.fill_xy(fill_x, fill_y, fill_weight, 'TRUTH')

	def fill_xy_truth_with_reco_match(self, fill_x, fill_y, fill_weight):
		return self.fill_xy(fill_x, fill_y, fill_weight, 'TRUTHWITHRECOMATCH')

	def fill_xy_truth_no_reco_match(self, fill_x, fill_y, fill_weight):
		return self.fill_xy(fill_x, fill_y, fill_weight, 'TRUTHNORECOMATCH')

	def fill_xy_raw_with_truth_match(self, fill_x, fill_y, fill_weight):
		return self.fill_xy(fill_x, fill_y, fill_weight, 'RAWWITHTRUTHMATCH')

	def fill_xy_raw_no_truth_match(self, fill_x, fill_y, fill_weight):
		return self.fill_xy(fill_x, fill_y, fill_weight, 'RAWNOTRUTHMATCH')

	def fill_xy_single_truth_to_multi_fake(self, fill_x, fill_y, fill_weight):
		return self.fill_xy(fill_x, fill_y, fill_weight, 'SINGLETRUTHTOMULTIFAKE')

	def fill_xy_single_truth_to_multi_fake_mix(self, fill_x, fill_y, fill_weight):
		return self.fill_xy(fill_x, fill_y, fill_weight, 'SINGLETRUTHTOMULTIFAKEMIX')

	def compute_sub(self):
		"""Recompute the derived channels from RAW/MIX/MIXCORRECTION; repeated calls give the same result."""
		if not self._is_init:
			perror('MixMachine.compute_sub: called w/o initializing')
			return False
		h = {ch : self._hists[pos] for ch, pos in self._channel_pos.items()}
		hist_reset(h['SUB'])
		if self._mix_mode == MixMode.NONE:
			hist_add(h['SUB'], h['RAW'])
		elif self._mix_mode == MixMode.INCLUSIVE:
			hist_add(h['SUB'], h['RAW'])
			hist_add(h['SUB'], h['MIX'], -1.)
		elif self._mix_mode == MixMode.MULTI:
			hist_reset(h['MIXCORRECTED'])
			hist_add(h['MIXCORRECTED'], h['MIX'])
			hist_add(h['MIXCORRECTED'], h['MIXCORRECTION'], -1.)
			hist_add(h['SUB'], h['RAW'])
			hist_add(h['SUB'], h['MIXCORRECTED'], -1.)
		return True

	# compatibility
	def _check_both_init(self, other, caller):
		if not self._is_init or other is None or not other.is_init:
			perror('MixMachine.{}: both machines must be initialized'.format(caller))
			return False
		return True

	def check_machines_match_mode(self, other):
		if not self._check_both_init(other, 'check_machines_match_mode'):
			return False
		if self._mix_mode != other.mix_mode:
			perror('MixMachine: \'{}\' mode {} does not match \'{}\' mode {}'.format(self._machine_name, self._mix_mode.name, other.machine_name, other.mix_mode.name))
			return False
		return True

	def check_machines_match_mc(self, other):
		if not self._check_both_init(other, 'check_machines_match_mc'):
			return False
		if self._is_mc != other.is_mc:
			perror('MixMachine: \'{}\' is_mc={} does not match \'{}\' is_mc={}'.format(self._machine_name, self._is_mc, other.machine_name, other.is_mc))
			return False
		return True

	def check_machines_match_2d(self, other):
		if not self._check_both_init(other, 'check_machines_match_2d'):
			return False
		if self._is_2d_unfold != other.is_2d_unfold:
			perror('MixMachine: \'{}\' is_2d_unfold={} does not match \'{}\' is_2d_unfold={}'.format(self._machine_name, self._is_2d_unfold, other.machine_name, other.is_2d_unfold))
			return False
		return True

	def check_machines_match_bins(self, other, precision=0.0001):
		if not self._check_both_init(other, 'check_machines_match_bins'):
			return False
		label = 'MixMachine: \'{}\' vs. \'{}\' x axis: '.format(self._machine_name, other.machine_name)
		if not edges_match(self._bins_x, other.bins_x, precision, label):
			return False
		if self._is_2d_unfold and other.is_2d_unfold:
			label = 'MixMachine: \'{}\' vs. \'{}\' y axis: '.format(self._machine_name, other.machine_name)
			if not edges_match(self._bins_y, other.bins_y, precision, label):
				return False
		return True

	def check_machines_match(self, other, precision=0.0001):
		return self.check_machines_match_mode(other) \
			and self.check_machines_match_mc(other) \
			and self.check_machines_match_2d(other) \
			and self.check_machines_match_bins(other, precision)

	def add(self, *others, precision=0.0001):
		"""Add every channel of the other machines into this one; nothing changes unless all of them match."""
		if not self._is_init:
			perror('MixMachine.add: called w/o initializing')
			return False
		if len(others) == 0:
			perror('MixMachine.add: nothing to add to \'{}\''.format(self._machine_name))
			return False
		for other in others:
			if not self.check_machines_match(other, precision):
				perror('MixMachine.add: \'{}\' cannot be added to \'{}\'. return False'.format(getattr(other, 'machine_name', other), self._machine_name))
				return False
		for other in others:
			for h, h_other in zip(self._hists, other.get_hists()):
				hist_add(h, h_other)
		return True

	# access
	def get_hist_1d(self, channel):
		pos = self._get_pos(channel, 'get_hist_1d')
		if pos < 0:
			return None
		if self._is_2d_unfold:
			perror('MixMachine.get_hist_1d: \'{}\' is 2D, use get_hist_2d'.format(self._machine_name))
			return None
		return self._hists[pos]

	def get_hist_2d(self, channel):
		pos = self._get_pos(channel, 'get_hist_2d')
		if pos < 0:
			return None
		if not self._is_2d_unfold:
			perror('MixMachine.get_hist_2d: \'{}\' is 1D, use get_hist_1d'.format(self._machine_name))
			return None
		return self._hists[pos]

	def get_hists(self):
		return list(self._hists)

	# persistency
	def write_to_file(self, fout):
		if not self._is_init:
			perror('MixMachine.write_to_file: called w/o initializing')
			return False
		if isinstance(fout, (str, os.PathLike)):
			if os.path.exists(fout):
				f = uproot.update(fout)
			else:
				f = uproot.recreate(fout)
			with f:
				return self.write_to_directory(f)
		return self.write_to_directory(fout)

	def write_to_directory(self, directory):
		if not self._is_init:
			perror('MixMachine.write_to_directory: called w/o initializing')
			return False
		for ch, h in zip(self._channels, self._hists):
			write_object(directory, self.hist_name(ch), h)
		return True

	def read_from_directory(self, directory, precision=0.0001):
		"""Load all channels by their canonical names from a ROOT directory (or mapping) into this machine."""
		if not self._is_init:
			perror('MixMachine.read_from_directory: called w/o initializing')
			return False
		loaded = []
		for ch, h in zip(self._channels, self._hists):
			hname = self.hist_name(ch)
			if hname not in directory:
				perror('MixMachine.read_from_directory: \'{}\' not found'.format(hname))
				return False
			src = directory[hname]
			if hasattr(src, 'to_hist'):
				src = src.to_hist()
			src_edges = hist_edges(src)
			own_edges = hist_edges(h)
			if len(src_edges) != len(own_edges):
				perror('MixMachine.read_from_directory: \'{}\' has {} axes, expected {}'.format(hname, len(src_edges), len(own_edges)))
				return False
			for ia, (se, oe) in enumerate(zip(src_edges, own_edges)):
				if not edges_match(oe, se, precision, '\'{}\' axis {}: '.format(hname, ia)):
					return False
			loaded.append((h, src))
		for h, src in loaded:
			hist_copy_contents(h, src)
		return True

	# truth bookkeeping
	@staticmethod
	def _tracking_key(value):
		if isinstance(value, (list, tuple)):
			return tuple(int(v) for v in value)
		return int(value)

	def push_tracking(self, value):
		key = self._tracking_key(value)
		if key in self._tracking:
			pwarning('MixMachine.push_tracking: \'{}\' already tracks {}'.format(self._machine_name, key))
		self._tracking.add(key)

	def is_in_tracking(self, value):
		return self._tracking_key(value) in self._tracking

	def clean_tracking(self):
		self._tracking = set()

	def description(self):
		if not self._is_init:
			return '[i] MixMachine (not initialized)'
		s = ['[i] MixMachine \'{}\''.format(self._machine_name)]
		s.append('   mix_mode = {} ({})'.format(self._mix_mode.name, int(self._mix_mode)))
		s.append('   is_mc = {}, is_2d_unfold = {}'.format(self._is_mc, self._is_2d_unfold))
		s.append('   x: {} bins {} ({})'.format(self._n_bins_x, self._bins_x, self._title_x))
		if self._is_2d_unfold:
			s.append('   y: {} bins {} ({})'.format(self._n_bins_y, self._bins_y, self._title_y))
		for ch, h in zip(self._channels, self._hists):
			s.append('   {} : {} (sum {})'.format(ch, self.hist_name(ch), h.sum(flow=True).value))
		return '\n'.join(s)

	def __str__(self):
		return self.description()

	def clean(self):
		self._reset()

	@property
	def is_init(self):
		return self._is_init

	@property
	def machine_name(self):
		return self._machine_name

	@property
	def mix_mode(self):
		return self._mix_mode

	@property
	def is_mc(self):
		return self._is_mc

	@property
	def is_2d_unfold(self):
		return self._is_2d_unfold

	@property
	def n_bins_x(self):
		return self._n_bins_x

	@property
	def bins_x(self):
		return list(self._bins_x)

	@property
	def n_bins_y(self):
		return self._n_bins_y

	@property
	def bins_y(self):
		return list(self._bins_y)

	@property
	def channel_names(self):
		return list(self._channels)
