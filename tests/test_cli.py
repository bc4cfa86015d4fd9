import pytest

import main as cli
from pbkdf_mod.hash_format import hash_password, parse_hash
from pbkdf_mod.kdf import KDFParams


@pytest.fixture
def prompts(monkeypatch):
    answers = []
    monkeypatch.setattr(cli, "getpass", lambda prompt="": answers.pop(0))
    return answers


def test_hash_prints_encoded_hash(prompts, capsys):
    prompts.extend(["s3cret", "s3cret"])
    assert cli.main(["hash", "-i", "1000", "-l", "24", "-s", "8"]) == 0

    encoded = capsys.readouterr().out.strip()
    parsed = parse_hash(encoded)
    assert encoded.startswith("$pbkdf2-sha256$i=1000,l=24$")
    assert len(parsed.salt) == 8


def test_hash_iterations_from_env(prompts, capsys, monkeypatch):
    monkeypatch.setenv(cli.ITERATIONS_ENV, "2000")
    prompts.extend(["pw", "pw"])
    assert cli.main(["hash"]) == 0
    assert "$i=2000,l=32$" in capsys.readouterr().out


def test_hash_ignores_bad_env(monkeypatch):
    monkeypatch.setenv(cli.ITERATIONS_ENV, "lots")
    assert cli.default_iterations() == 0


def test_hash_confirmation_mismatch(prompts, capsys):
    prompts.extend(["one", "two"])
    assert cli.main(["hash", "-i", "1000"]) == 2
    assert "do not match" in capsys.readouterr().err


def test_hash_rejects_negative_options(capsys):
    assert cli.main(["hash", "-s", "-1"]) == 2
    assert "negative" in capsys.readouterr().err


def test_verify_match_and_mismatch(prompts, capsys):
    encoded = hash_password("pw", KDFParams(iterations=1000))

    prompts.append("pw")
    assert cli.main(["verify", encoded]) == 0
    assert capsys.readouterr().out.strip() == "OK"

    prompts.append("nope")
    assert cli.main(["verify", encoded]) == 1
    assert capsys.readouterr().out.strip() == "MISMATCH"


def test_verify_malformed_hash(prompts, capsys):
    prompts.append("pw")
    assert cli.main(["verify", "invalid"]) == 1
    assert capsys.readouterr().err.strip() == "Error: invalid or corrupted hash"


def test_hash_out_of_range_iterations(prompts, capsys):
    prompts.extend(["pw", "pw"])
    assert cli.main(["hash", "-i", "3000000000"]) == 1
    assert "Error: iterations must be in 1..2147483647" in capsys.readouterr().err
