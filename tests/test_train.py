"""
Command line training tests.
"""

import pytest

from evosnake.train.train_evolution import main, parse_args, plot_evolution_progress, train_evolution

TINY_RUN = [
    "--population", "6",
    "--generations", "2",
    "--workers", "1",
    "--board", "6",
    "--seed", "1",
    "--evaluation-seed", "2",
]


class TestTrainEvolution:
    def test_returns_trained_algorithm(self, small_config, capsys):
        ga = train_evolution(small_config)

        assert len(ga.history) == 4
        assert len(ga.best_fitness_history) == 4
        out = capsys.readouterr().out
        assert "Genetic Algorithm Training" in out
        assert "Final best fitness" in out

    def test_quiet_mode_skips_header(self, small_config, capsys):
        train_evolution(small_config, quiet=True)

        out = capsys.readouterr().out
        assert "Genetic Algorithm Training" not in out
        assert "Gen    0:" in out


class TestMain:
    def test_defaults(self):
        args = parse_args([])

        assert args.population == 500
        assert args.generations == 2000
        assert args.board == 10
        assert not args.plot and not args.replay

    def test_tiny_run(self, capsys):
        main(TINY_RUN)

        out = capsys.readouterr().out
        assert "Training completed" in out
        assert "Best=" in out

    def test_invalid_configuration_exits(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(TINY_RUN + ["--crossover-rate", "2.0"])

        assert excinfo.value.code == 1
        assert "Invalid configuration" in capsys.readouterr().out

    def test_unknown_choice_is_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            parse_args(["--executor", "gpu"])


class TestPlotEvolutionProgress:
    def test_last_panel_shows_steps_against_food(self, small_config, monkeypatch, capsys):
        import matplotlib.pyplot as plt

        plt.switch_backend("Agg")
        monkeypatch.setattr(plt, "show", lambda: None)
        ga = train_evolution(small_config, quiet=True)

        plot_evolution_progress(ga)

        axes = plt.gcf().axes
        assert len(axes) == 3
        assert axes[2].get_xlabel() == "Steps Survived"
        assert axes[2].get_ylabel() == "Food Eaten"
        plotted = sum(len(collection.get_offsets()) for collection in axes[2].collections)
        assert plotted == len(ga.population)
        plt.close("all")
