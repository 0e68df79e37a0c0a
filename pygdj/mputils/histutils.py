import hist
import numpy as np

from pygdj.mputils.mputils import perror


def make_hist_1d(name, title, edges_x, title_x=''):
	h = hist.Hist(hist.axis.Variable(edges_x, name='x', label=title_x),
				  storage=hist.storage.Weight(), name=name, label=title)
	return h


def make_hist_2d(name, title, edges_x, edges_y, title_x='', title_y=''):
	h = hist.Hist(hist.axis.Variable(edges_x, name='x', label=title_x),
				  hist.axis.Variable(edges_y, name='y', label=title_y),
				  storage=hist.storage.Weight(), name=name, label=title)
	return h


def hist_edges(h):
	return [np.asarray(ax.edges) for ax in h.axes]


def hist_add(target, other, coefficient=1.):
	# same as TH1::Add(other, c) with sumw2: errors add in quadrature
	tv = target.view(flow=True)
	ov = other.view(flow=True)
	tv.value[...] = tv.value + coefficient * ov.value
	tv.variance[...] = tv.variance + coefficient * coefficient * ov.variance
	return target


def hist_reset(h):
	h.reset()
	return h


def hist_copy_contents(target, source):
	"""Copy values and variances (flow bins included) of source into target; binning must agree."""
	tv = target.view(flow=True)
	values = np.asarray(source.values(flow=True))
	variances = source.variances(flow=True)
	if variances is None:
		variances = values
	tv.value[...] = values
	tv.variance[...] = np.asarray(variances)
	return target


def edges_match(edges_a, edges_b, precision=0.0001, label=''):
	if len(edges_a) != len(edges_b):
		perror('{}number of bin edges differ, {} vs. {}'.format(label, len(edges_a), len(edges_b)))
		return False
	for i, (ea, eb) in enumerate(zip(edges_a, edges_b)):
		if abs(ea - eb) > precision:
			perror('{}bin edge {} differs, {} vs. {} (precision {})'.format(label, i, ea, eb, precision))
			return False
	return True


def write_object(directory, name, obj):
	# replace an existing object of the same name
	if name in directory:
		del directory[name]
	directory[name] = obj
