#!/usr/bin/env python

import argparse
import os
import sys

import tqdm
import uproot

from pygdj.mputils import pinfo, perror, ConfigParser
from pygdj.mixed_events.mix_machine import MixMachine, to_mix_mode


def merge(args):
	if os.path.isfile(args.output) and not args.overwrite:
		pinfo('output', args.output, 'exists - use --overwrite to do just that...')
		return False

	config = ConfigParser(config_file=args.config, debug_level=args.debug)
	if not config.is_valid:
		return False
	if to_mix_mode(args.mode) is None:
		perror('unknown mix mode', args.mode)
		return False

	aggregate = MixMachine(name=args.name, mode=args.mode, config=config, debug_level=args.debug)
	if not aggregate.is_init:
		return False

	part = MixMachine(debug_level=args.debug)
	for fname in tqdm.tqdm(args.input):
		# fresh, empty channels for every input
		part.init(args.name, args.mode, config)
		with uproot.open(fname) as fin:
			if not part.read_from_directory(fin):
				perror('failed to read', args.name, 'from', fname)
				return False
		if not aggregate.add(part):
			perror('failed to merge', fname)
			return False

	if args.compute_sub:
		aggregate.compute_sub()
	if args.debug:
		print(aggregate)

	with uproot.recreate(args.output) as fout:
		aggregate.write_to_directory(fout)
	pinfo('merged', len(args.input), 'file(s) into', args.output)
	return True


def main(argv=None):
	parser = argparse.ArgumentParser(description='merge per-job mix machine histograms', prog=os.path.basename(__file__))
	parser.add_argument('input', nargs='+', help='input ROOT files')
	parser.add_argument('--config', required=True, help='mix machine config (TEnv style or yaml)')
	parser.add_argument('--name', required=True, help='mix machine name')
	parser.add_argument('--mode', default='INCLUSIVE', help='mix mode: NONE, INCLUSIVE, MULTI (or 0, 1, 2)')
	parser.add_argument('-o', '--output', default='merged.root', help='output ROOT file')
	parser.add_argument('--overwrite', help='overwrite the output file', default=False, action='store_true')
	parser.add_argument('--compute-sub', help='recompute the subtracted channels after merging', default=False, action='store_true')
	parser.add_argument('--debug', help='debug level', default=0, type=int)
	args = parser.parse_args(argv)
	if not merge(args):
		return 1
	return 0


if __name__ == '__main__':
	sys.exit(main())
