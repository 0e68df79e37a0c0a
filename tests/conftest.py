import pytest


@pytest.fixture
def config_1d():
	return {
		'IS2DUNFOLD' : 0,
		'ISMC' : 0,
		'NBINSX' : 4,
		'BINSX' : '0,1,2,3,4',
		'TITLEX' : 'x_{J#gamma}',
	}


@pytest.fixture
def config_2d():
	return {
		'IS2DUNFOLD' : 1,
		'ISMC' : 0,
		'NBINSX' : 4,
		'BINSX' : '0,1,2,3,4',
		'TITLEX' : 'x_{J#gamma}',
		'NBINSY' : 2,
		'BINSY' : '50, 100, 200',
		'TITLEY' : 'p_{T}^{#gamma}',
	}


@pytest.fixture
def config_1d_mc(config_1d):
	cfg = dict(config_1d)
	cfg['ISMC'] = 1
	return cfg
