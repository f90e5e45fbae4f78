"""
Tests de l'interface en ligne de commande.
"""

import pytest

from kdindex.cli import main


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "general:\n  debug: true\n"
        "search:\n  k: 3\n  queries: 10\n  n_jobs: 2\n"
        "generate:\n  n_points: 300\n  dims: 2\n"
        f"files:\n  points_dir: {tmp_path}\n  default_points: points.bin\n"
    )
    return str(path)


def test_generate_query_and_test(config_file, tmp_path, capsys):
    assert main(["--config", config_file, "generate"]) == 0
    assert (tmp_path / "points.bin").exists()

    assert main(["--config", config_file, "query", "--point", "0", "0"]) == 0
    output = capsys.readouterr().out
    assert "Audit de l'arbre: 0 violation(s)" in output
    assert "3. (" in output

    assert main(["--config", config_file, "test", "--norm", "manhattan"]) == 0
    assert "Recall: 100.00%" in capsys.readouterr().out


def test_query_within_radius(config_file, tmp_path, capsys):
    points_file = str(tmp_path / "small.npy")
    assert main(["--config", config_file, "generate", points_file,
                 "--n_points", "50", "--dims", "3", "--seed", "1"]) == 0
    assert main(["--config", config_file, "query", points_file,
                 "--point", "500", "500", "500", "--radius", "1", "--k", "5"]) == 0
    assert "Aucun point trouvé" in capsys.readouterr().out


def test_command_errors_return_one(config_file, tmp_path, capsys):
    assert main(["--config", config_file, "generate", "--n_points", "20"]) == 0

    # Dimension de la requête différente de celle des points
    assert main(["--config", config_file, "query", "--point", "1", "2", "3"]) == 1
    # Rayon invalide
    assert main(["--config", config_file, "query", "--point", "1", "2", "--radius", "0"]) == 1
    # Fichier absent
    assert main(["--config", config_file, "test", str(tmp_path / "absent.bin")]) == 1
    assert "❌ Erreur" in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out
