"""Tests for the rl package - SeatEnv and its encoders."""

import numpy as np
import pytest

from core.constants import Difficulty, GameStatus
from engine.game_engine import Action, ActionType
from rl.action_masking import ActionMaskGenerator
from rl.action_space import ActionMapping
from rl.agents import HeuristicAgent, RandomAgent
from rl.config import (
    DEFAULT_ACTION_CONFIG,
    DEFAULT_OBS_CONFIG,
    DEFAULT_REWARD_CONFIG,
    EnvTimingConfig,
)
from rl.observation import ObservationEncoder
from rl.reward import RewardCalculator
from rl.seat_env import SeatEnv, make_seat_env


@pytest.fixture
def env():
    """An easy ride over the whole short line."""
    return SeatEnv(difficulty=Difficulty.EASY)


@pytest.fixture
def reset_env(env):
    env.reset(seed=0)
    return env


def play(env, agent, max_steps=500):
    terminated = truncated = False
    info = {}
    steps = 0
    while not (terminated or truncated) and steps < max_steps:
        mask = env.action_masks()
        action = agent.act(env)
        assert mask[action], f"agent picked masked action {action}"
        _, _, terminated, truncated, info = env.step(action)
        steps += 1
    return terminated, truncated, info


class TestConfig:
    """Tests for rl/config.py index layout."""

    def test_action_layout(self):
        cfg = DEFAULT_ACTION_CONFIG
        assert cfg.advance_idx == 0
        assert cfg.reveal_start == 1
        assert cfg.watch_start == 7
        assert cfg.unwatch_idx == 13
        assert cfg.move_start == 14
        assert cfg.claim_start == 20
        assert cfg.tap_start == 26
        assert cfg.wait_idx == 32
        assert cfg.total_actions == 33

    def test_observation_dim(self):
        assert DEFAULT_OBS_CONFIG.total_observation_dim == 30 + 18 + 6 + 9 + 8


class TestActionMapping:
    """Tests for rl/action_space.py."""

    @pytest.fixture
    def mapping(self):
        return ActionMapping()

    def test_every_index_maps_back(self, mapping):
        for idx in range(mapping.total_actions):
            assert mapping.action_to_index(mapping.index_to_action(idx)) == idx

    def test_wait_is_none(self, mapping):
        assert mapping.index_to_action(DEFAULT_ACTION_CONFIG.wait_idx) is None

    def test_specific_actions(self, mapping):
        action = mapping.index_to_action(DEFAULT_ACTION_CONFIG.claim_start + 4)
        assert action.action_type == ActionType.CLAIM_SEAT
        assert action.params == {"seat_id": 4}
        unwatch = mapping.index_to_action(DEFAULT_ACTION_CONFIG.unwatch_idx)
        assert unwatch.params == {"seat_id": None}

    def test_out_of_range(self, mapping):
        with pytest.raises(ValueError):
            mapping.index_to_action(mapping.total_actions)
        with pytest.raises(ValueError):
            mapping.action_to_index(Action(ActionType.CLAIM_SEAT, {"seat_id": 9}))

    def test_action_range(self, mapping):
        assert mapping.get_action_range(ActionType.TAP_GRAB_SEAT) == (26, 32)


class TestMaskGenerator:
    """Tests for rl/action_masking.py."""

    def test_terminal_state_allows_wait(self, reset_env):
        generator = ActionMaskGenerator(ActionMapping())
        state = reset_env.get_state().replace(status=GameStatus.LOST)
        mask = generator.generate_mask(state, [])
        assert generator.get_valid_action_indices(mask).tolist() == [DEFAULT_ACTION_CONFIG.wait_idx]

    def test_live_state_without_actions_raises(self, reset_env):
        generator = ActionMaskGenerator(ActionMapping())
        with pytest.raises(RuntimeError):
            generator.generate_mask(reset_env.get_state(), [])


class TestObservation:
    """Tests for rl/observation.py."""

    def test_shape_and_range(self, reset_env):
        obs = ObservationEncoder().encode(reset_env.get_state())
        assert obs.shape == (DEFAULT_OBS_CONFIG.total_observation_dim,)
        assert obs.dtype == np.float32
        assert obs.min() >= 0.0 and obs.max() <= 1.0

    def test_hidden_destinations_not_encoded(self, reset_env):
        encoder = ObservationEncoder()
        state = reset_env.get_state()
        seat = state.occupied_seats()[0]
        base = seat.seat_id * DEFAULT_OBS_CONFIG.SEAT_FEATURE_DIM

        hidden = encoder.encode(state)
        assert hidden[base] == 1.0
        assert hidden[base + 2] == 0.0 and hidden[base + 4] == 0.0

        reset_env.step(DEFAULT_ACTION_CONFIG.reveal_start + seat.seat_id)
        shown = encoder.encode(reset_env.get_state())
        assert shown[base + 2] == 1.0
        assert shown[base + 4] > 0.0


class TestReward:
    """Tests for rl/reward.py."""

    def test_seated_and_win(self, reset_env):
        calc = RewardCalculator()
        standing = reset_env.get_state()
        seated = standing.replace(player_seated=True, player_seat_id=standing.empty_seat_ids()[0])
        info = calc.compute_reward_detailed(seated, standing, done=False)
        assert info.seated_reward == DEFAULT_REWARD_CONFIG.seated_reward
        won = seated.replace(status=GameStatus.WON)
        assert calc.compute_reward(won, seated, done=True) == pytest.approx(
            DEFAULT_REWARD_CONFIG.step_penalty + DEFAULT_REWARD_CONFIG.win_reward
        )

    def test_invalid_action_penalty(self, reset_env):
        state = reset_env.get_state()
        reward = RewardCalculator().compute_reward(state, state, done=False, action_valid=False)
        assert reward == pytest.approx(
            DEFAULT_REWARD_CONFIG.step_penalty + DEFAULT_REWARD_CONFIG.invalid_action_penalty
        )


class TestSeatEnv:
    """Tests for rl/seat_env.py."""

    def test_spaces(self, env):
        assert env.action_space.n == DEFAULT_ACTION_CONFIG.total_actions
        assert env.observation_space.shape == (DEFAULT_OBS_CONFIG.total_observation_dim,)

    def test_step_before_reset_raises(self, env):
        with pytest.raises(RuntimeError):
            env.step(0)

    def test_reset(self, env):
        obs, info = env.reset(seed=1)
        assert env.observation_space.contains(obs)
        assert info["station"] == 0
        assert info["status"] == "playing"
        assert info["valid_action_count"] > 0

    def test_seeded_resets_repeat(self, env):
        obs_a, _ = env.reset(seed=42)
        obs_b, _ = env.reset(seed=42)
        np.testing.assert_array_equal(obs_a, obs_b)

    def test_reset_options(self, env):
        env.reset(seed=0, options={"boarding_station_index": 2, "destination_station_index": 4})
        state = env.get_state()
        assert state.current_station_index == 2
        assert state.destination_station_index == 4

    def test_advance_runs_to_next_decision(self, reset_env):
        _, reward, terminated, truncated, info = reset_env.step(DEFAULT_ACTION_CONFIG.advance_idx)
        engine = reset_env.engine
        assert not engine.is_animating()
        assert reset_env.get_state().current_station_index == 1
        # Either a grab window awaits a tap or the train is idle again
        assert engine.grab_session.is_active or not engine.is_grab_pending()
        assert not terminated and not truncated
        assert "invalid_action" not in info

    def test_claim_then_win(self, reset_env):
        seat_id = reset_env.get_state().empty_seat_ids()[0]
        _, reward, _, _, _ = reset_env.step(DEFAULT_ACTION_CONFIG.claim_start + seat_id)
        assert reward == pytest.approx(
            DEFAULT_REWARD_CONFIG.step_penalty + DEFAULT_REWARD_CONFIG.seated_reward
        )

        terminated = False
        total = 0.0
        for _ in range(20):
            _, reward, terminated, _, info = reset_env.step(DEFAULT_ACTION_CONFIG.advance_idx)
            total += reward
            if terminated:
                break
        assert terminated
        assert info["status"] == "won"
        assert total > 0

    def test_invalid_action_penalized(self, reset_env):
        occupied = reset_env.get_state().occupied_seats()[0].seat_id
        _, reward, _, _, info = reset_env.step(DEFAULT_ACTION_CONFIG.claim_start + occupied)
        assert info["invalid_action"]
        assert reward == pytest.approx(
            DEFAULT_REWARD_CONFIG.step_penalty + DEFAULT_REWARD_CONFIG.invalid_action_penalty
        )

    def test_wait_outside_grab_is_invalid(self, reset_env):
        _, _, _, _, info = reset_env.step(DEFAULT_ACTION_CONFIG.wait_idx)
        assert info["invalid_action"]

    def test_truncation(self):
        env = SeatEnv(timing_config=EnvTimingConfig(max_steps=1))
        env.reset(seed=0)
        _, _, terminated, truncated, _ = env.step(DEFAULT_ACTION_CONFIG.advance_idx)
        assert truncated and not terminated

    def test_render_ansi(self):
        env = make_seat_env(render_mode="ansi")
        env.reset(seed=0)
        assert "GameState" in env.render()


class TestAgents:
    """Play whole rides with the scripted agents."""

    @pytest.mark.parametrize("seed", range(3))
    def test_random_agent_finishes(self, seed):
        env = SeatEnv(difficulty=Difficulty.NORMAL)
        env.reset(seed=seed)
        terminated, truncated, info = play(env, RandomAgent(seed))
        assert terminated or truncated
        if terminated:
            assert info["status"] in ("won", "lost")

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_heuristic_agent_finishes(self, difficulty):
        env = SeatEnv(difficulty=difficulty)
        env.reset(seed=7)
        terminated, _, info = play(env, HeuristicAgent())
        assert terminated
        assert info["status"] in ("won", "lost")

    def test_heuristic_agent_wins_easy_rides(self):
        env = SeatEnv(difficulty=Difficulty.EASY)
        wins = 0
        for seed in range(5):
            env.reset(seed=seed)
            _, _, info = play(env, HeuristicAgent())
            wins += info["status"] == "won"
        assert wins == 5
