import math

import pytest

from pygdj.mputils import ConfigParser


@pytest.fixture
def tenv_file(tmp_path):
	fname = tmp_path / 'params.config'
	fname.write_text('\n'.join([
		'# binning for the xJ mix machine',
		'',
		'IS2DUNFOLD: 1',
		'ISMC: false',
		'NBINSX: 3',
		'BINSX: 0, 0.5, 1.0, 2.0',
		'DPHIBINS: 0 pi/2 3pi/4 pi',
		'TITLEX: x_{J#gamma}',
		'GAMMAJTDPHI: 7pi/8',
	]) + '\n')
	return str(fname)


def test_tenv_file(tenv_file):
	cfg = ConfigParser(config_file=tenv_file)
	assert cfg.is_valid
	assert cfg.get_bool('IS2DUNFOLD') is True
	assert cfg.get_bool('ISMC') is False
	assert cfg.get_int('NBINSX') == 3
	assert cfg.get_list('BINSX') == pytest.approx([0., 0.5, 1., 2.])
	assert cfg.get_list('DPHIBINS') == pytest.approx([0., math.pi / 2., 3. * math.pi / 4., math.pi])
	assert cfg.get_value('TITLEX') == 'x_{J#gamma}'
	assert cfg.get_float('GAMMAJTDPHI') == pytest.approx(7. * math.pi / 8.)


def test_yaml_file(tmp_path):
	fname = tmp_path / 'params.yaml'
	fname.write_text('IS2DUNFOLD: true\nISMC: 0\nNBINSX: 2\nBINSX: [0, 1, 5]\nTITLEX: p_T\n')
	cfg = ConfigParser(config_file=str(fname))
	assert cfg.is_valid
	assert cfg.get_bool('IS2DUNFOLD') is True
	assert cfg.get_bool('ISMC') is False
	assert cfg.get_list('BINSX') == pytest.approx([0., 1., 5.])


def test_missing_file(tmp_path, capsys):
	cfg = ConfigParser(config_file=str(tmp_path / 'nothere.config'))
	assert not cfg.is_valid
	assert 'invalid' in capsys.readouterr().err


def test_malformed_line(tmp_path):
	fname = tmp_path / 'bad.config'
	fname.write_text('NBINSX 3\n')
	assert not ConfigParser(config_file=str(fname)).is_valid


def test_contains_params_reports_all(capsys):
	cfg = ConfigParser(config_dict={'NBINSX' : 3})
	assert cfg.contains_param('NBINSX')
	assert not cfg.contains_params(['NBINSX', 'BINSX', 'TITLEX'])
	err = capsys.readouterr().err
	assert 'BINSX' in err
	assert 'TITLEX' in err


def test_typed_getters_reject_garbage():
	cfg = ConfigParser(config_dict={'N' : '3.5', 'B' : 'perhaps', 'L' : '1,x,3', 'F' : 'abc'})
	assert cfg.get_int('N') is None
	assert cfg.get_bool('B') is None
	assert cfg.get_list('L') is None
	assert cfg.get_float('F') is None
	assert cfg.get_int('MISSING', 4) == 4
	assert cfg.get_list('L', numeric=False) == ['1', 'x', '3']


def test_set_value_warns_on_override(capsys):
	cfg = ConfigParser(config_dict={'ISMC' : 0})
	cfg.set_value('ISPP', 1)
	assert capsys.readouterr().err == ''
	cfg.set_value('ISMC', 1)
	assert '[w]' in capsys.readouterr().err
	assert cfg.get_bool('ISMC') is True
	assert cfg.get_config_map() == {'ISMC' : 1, 'ISPP' : 1}


def test_check_config_params():
	a = ConfigParser(config_dict={'BINSX' : '0, 1, 2', 'ISMC' : 0})
	b = ConfigParser(config_dict={'BINSX' : '0,1,2', 'ISMC' : 1})
	assert a.check_config_params(b, ['BINSX'])
	assert not a.check_config_params(b, ['BINSX', 'ISMC'])
	assert not a.check_config_params(b, ['TITLEX'])


def test_division_by_zero_is_not_a_number():
	cfg = ConfigParser(config_dict={'F' : '1/0', 'L' : '0, 1/0, 2'})
	assert cfg.get_float('F') is None
	assert cfg.get_list('L') is None
