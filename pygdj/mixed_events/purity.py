import math

import numpy as np

from pygdj.mputils.mputils import perror
from pygdj.mputils.histutils import make_hist_2d, hist_edges


def _per_gamma_bin(pho_hist, pho_mean_hist, pho_sideband_hist):
	raw = np.asarray(pho_hist.values(), dtype=float)
	mean_num = np.asarray(pho_mean_hist.values(), dtype=float)
	sideband = np.asarray(pho_sideband_hist.values(), dtype=float)
	mean = np.zeros_like(raw)
	for i in range(raw.size):
		if mean_num[i] < 1e-100 or raw[i] <= 0.:
			continue
		mean[i] = mean_num[i] / raw[i]
	sideband = np.where(sideband < 1e-100, 0., sideband)
	return mean, raw, sideband


def do_purity_corr(pho_hist, pho_mean_hist, pho_sideband_hist, sub_hist, sideband_hist, purity_fit, bin_flattener=None):
	"""
	Subtract the non-signal photon contribution from a (x, gamma pt) histogram.

	pho_hist, pho_mean_hist and pho_sideband_hist are 1D over gamma pt bins:
	signal region counts, the sum of the purity fit variable, and sideband
	counts. sub_hist and sideband_hist are 2D (x, y); y is the gamma pt bin,
	or a flattened global bin when bin_flattener is given. purity_fit is any
	callable of the mean fit variable.

	The sideband shape is scaled to the signal region count of its gamma pt
	bin and weighted by (1 - purity); errors add in quadrature.

	Returns (purity corrected histogram, background histogram), or
	(None, None) on inconsistent input.
	"""
	mean, raw, sideband = _per_gamma_bin(pho_hist, pho_mean_hist, pho_sideband_hist)

	edges_x, edges_y = hist_edges(sub_hist)
	name = getattr(sub_hist, 'name', None) or 'sub'
	h_corr = make_hist_2d('{}_PURCORR'.format(name), '{}_PURCORR'.format(name), edges_x, edges_y,
						  sub_hist.axes[0].label, sub_hist.axes[1].label)
	h_bkg = make_hist_2d('{}_BKGD'.format(name), '{}_BKGD'.format(name), edges_x, edges_y,
						 sub_hist.axes[0].label, sub_hist.axes[1].label)

	sub_vals = np.asarray(sub_hist.values())
	sub_vars = np.asarray(sub_hist.variances())
	sb_vals = np.asarray(sideband_hist.values())
	sb_vars = np.asarray(sideband_hist.variances())
	if sub_vals.shape != sb_vals.shape:
		perror('do_purity_corr: signal {} and sideband {} histograms differ in shape'.format(sub_vals.shape, sb_vals.shape))
		return None, None

	corr_view = h_corr.view()
	bkg_view = h_bkg.view()
	n_x, n_y = sub_vals.shape
	for ix in range(n_x):
		for iy in range(n_y):
			content = sub_vals[ix, iy]
			error = math.sqrt(sub_vars[ix, iy])
			sb_content = sb_vals[ix, iy]
			sb_error = math.sqrt(sb_vars[ix, iy])
			if content < 1e-50 and sb_content < 1e-50:
				continue

			gamma_bin = iy
			if bin_flattener is not None:
				gamma_bin = bin_flattener.get_bin1_pos_from_global(iy)
			if gamma_bin < 0 or gamma_bin >= raw.size:
				perror('do_purity_corr: y bin {} maps to gamma pt bin {} outside 0-{}'.format(iy, gamma_bin, raw.size - 1))
				return None, None

			purity = purity_fit(mean[gamma_bin])
			scale = 0.
			if sideband[gamma_bin] > 0:
				scale = (1. - purity) * raw[gamma_bin] / sideband[gamma_bin]
			sb_content = scale * sb_content
			sb_error = scale * sb_error

			bkg_view.value[ix, iy] = sb_content
			bkg_view.variance[ix, iy] = sb_error * sb_error
			corr_view.value[ix, iy] = content - sb_content
			corr_view.variance[ix, iy] = error * error + sb_error * sb_error

	return h_corr, h_bkg
