import pandas as pd

from conftest import make_group
from interface.batch_runner import BatchRunner
from services.orchestrator import BeamJob


def _jobs(two_span_results):
    return [BeamJob(make_group("B1"), two_span_results)]


def test_nest_dotted_paths():
    assert BatchRunner._nest({"beam.max_layers": 1, "rules.safety_factor": 1.1, "beam.prefer_symmetric": False}) == {
        "beam": {"max_layers": 1, "prefer_symmetric": False},
        "rules": {"safety_factor": 1.1},
    }


def test_combinations():
    runner = BatchRunner([], {"beam.max_layers": [1, 2], "rules.safety_factor": [1.0, 1.1, 1.2]})
    combos = runner._generate_combinations()
    assert len(combos) == 6
    assert combos[0] == {"beam.max_layers": 1, "rules.safety_factor": 1.0}


def test_run_and_save(tmp_path, two_span_results):
    runner = BatchRunner(_jobs(two_span_results), {"rules.safety_factor": [1.0, 3.0]})
    runner.run()

    df = runner.to_dataframe()
    ok = df[df["rules.safety_factor"] == 1.0]
    assert (ok["status"] == "OK").all()
    assert ok["rank"].tolist() == list(range(1, len(ok) + 1))
    assert (ok["beam"] == "B1").all()

    bad = df[df["rules.safety_factor"] == 3.0]
    assert bad["status"].tolist() == ["Error"]
    assert "safety_factor" in bad["message"].iloc[0]

    out = tmp_path / "batch.csv"
    runner.save_to_csv(str(out))
    saved = pd.read_csv(out, encoding="utf-8-sig")
    assert len(saved) == len(df)
    assert "total_score" in saved.columns


def test_save_without_results(tmp_path, capsys):
    out = tmp_path / "empty.csv"
    BatchRunner([]).save_to_csv(str(out))
    assert not out.exists()
    assert "결과가 없습니다" in capsys.readouterr().out
