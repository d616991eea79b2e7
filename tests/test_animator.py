import matplotlib.pyplot as plt
import numpy as np

from animator import PendulumArtist, animate_pendulum
from kinematics import TraceBuffer, bob_positions
from pendulum_types import PendulumParameters, PendulumState
from simulator import simulate_pendulum


def test_artist_follows_bobs():
    fig, ax = plt.subplots()
    params = PendulumParameters([1.0, 1.0], [1.0, 2.0])
    x, y = bob_positions(PendulumState.at_rest([0.0, np.pi / 2]), params)
    trace = TraceBuffer()
    trace.append(x[-1], y[-1])

    artist = PendulumArtist(ax, params.count)
    artists = artist.update(x, y, trace)

    assert len(artists) == 3 + params.count
    bx, by = artist.bobs[1].get_data()
    np.testing.assert_allclose([bx[0], by[0]], [2.0, -1.0], atol=1e-12)
    rx, ry = artist.rods.get_data()
    np.testing.assert_allclose(ry, [0.0, -1.0, -1.0], atol=1e-12)
    assert len(artist.trace.get_data()[0]) == 1
    plt.close(fig)


def test_hidden_rods_and_trace():
    fig, ax = plt.subplots()
    artist = PendulumArtist(ax, 1, show_rods=False, show_trace=False)
    trace = TraceBuffer()
    trace.append(0.0, 1.0)
    artist.update(np.array([0.0, 0.0]), np.array([0.0, 1.0]), trace)
    assert len(artist.rods.get_data()[0]) == 0
    assert len(artist.trace.get_data()[0]) == 0
    plt.close(fig)


def test_animate_missing_results(tmp_path, capsys):
    animate_pendulum(results_file=str(tmp_path / "missing.npz"), save_video=False)
    assert "not found" in capsys.readouterr().out


def test_animate_stored_ensemble(tmp_path, monkeypatch):
    out = tmp_path / "results.npz"
    simulate_pendulum(PendulumParameters([1.0], [1.0]), T=0.1, M=2, fps=100, output=out)
    monkeypatch.setattr(plt, "show", lambda *args, **kwargs: None)
    animate_pendulum(results_file=str(out), save_video=False)
