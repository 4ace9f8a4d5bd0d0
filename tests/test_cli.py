import pytest

from privacy_scheme.__main__ import main


def test_demo_with_software_card(capsys):
    assert main(["--simulate", "demo"]) == 0
    out = capsys.readouterr().out
    assert "Provisioned identifier 10000000" in out
    assert "VALID" in out


def test_setup_writes_parameters(tmp_path, capsys):
    path = tmp_path / "params.json"
    assert main(["--parameters", str(path), "setup"]) == 0
    assert path.exists()


def test_simulate_only_with_demo(tmp_path):
    path = tmp_path / "params.json"
    main(["--parameters", str(path), "setup"])
    with pytest.raises(SystemExit, match="demo"):
        main(["--parameters", str(path), "--simulate", "verify"])
    with pytest.raises(SystemExit, match="demo"):
        main(["--parameters", str(path), "--simulate", "provision", "10" + "00" * 31])
