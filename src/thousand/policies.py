"""
Network-backed bots and checkpoint helpers.

``NNPolicy`` wraps a ``ThousandPolicyNet`` as a ``Bot``: it encodes the
state, masks illegal actions and decodes the chosen index back into an
engine ``Action``. Checkpoints are directories with ``policy.pt`` (weights)
and ``config.json`` (architecture + rules it was built for).
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Tuple

import numpy as np
import torch

from . import __version__
from .actions import Action
from .env import OBS_DIM, encode_observation, index_to_action, legal_action_mask, num_actions
from .models import PolicyConfig, ThousandPolicyNet, build_model
from .rules import Rules, rules_from_dict, rules_to_dict
from .state import GameState


def _mask_logits(logits: torch.Tensor, legal_actions_mask: torch.Tensor) -> torch.Tensor:
    """Apply a boolean legal-actions mask to logits."""
    illegal = ~legal_actions_mask
    logits = logits.clone()
    logits[illegal] = -1e9
    return logits


@dataclass
class NNPolicy:
    """
    Bot driven by a policy network.

    By default actions are sampled from the masked distribution; set
    ``deterministic=True`` to always pick the argmax action instead.
    """

    model: ThousandPolicyNet
    policy_cfg: PolicyConfig
    device: torch.device = field(default_factory=lambda: torch.device("cpu"))
    deterministic: bool = False
    seed: int | None = None

    def __post_init__(self) -> None:
        self._generator = torch.Generator(device="cpu")
        if self.seed is not None:
            self._generator.manual_seed(self.seed)
        else:
            self._generator.seed()

    def action_index(self, state: GameState, player: int) -> int:
        if num_actions(state.rules) != self.policy_cfg.num_actions:
            raise ValueError(
                f"Policy has {self.policy_cfg.num_actions} actions, rules need {num_actions(state.rules)}"
            )
        obs_t = torch.tensor(encode_observation(state, player), dtype=torch.float32, device=self.device).unsqueeze(0)
        mask_np = np.array(legal_action_mask(state, player), dtype=bool)
        if not mask_np.any():
            raise ValueError(f"No legal actions for player {player} in NNPolicy")
        mask_t = torch.from_numpy(mask_np).to(self.device).unsqueeze(0)

        with torch.no_grad():
            logits, _ = self.model(obs_t)
            masked_logits = _mask_logits(logits, mask_t)
            if self.deterministic:
                action = torch.argmax(masked_logits, dim=-1)
            else:
                probs = torch.softmax(masked_logits, dim=-1).cpu()
                action = torch.multinomial(probs, 1, generator=self._generator).squeeze(-1)
        return int(action.item())

    def choose_action(self, state: GameState, player: int) -> Action:
        return index_to_action(state, player, self.action_index(state, player))


def new_policy(
    rules: Rules,
    hidden_dim: int = 128,
    card_dim: int = 8,
    seed: int | None = None,
    deterministic: bool = False,
) -> NNPolicy:
    """Freshly initialised (untrained) network policy for ``rules``."""
    if seed is not None:
        torch.manual_seed(seed)
    cfg = PolicyConfig(num_actions=num_actions(rules), obs_dim=OBS_DIM, hidden_dim=hidden_dim, card_dim=card_dim)
    model = build_model(cfg)
    model.eval()
    return NNPolicy(model=model, policy_cfg=cfg, deterministic=deterministic, seed=seed)


def save_policy_checkpoint(policy: NNPolicy, rules: Rules, directory: str | Path) -> None:
    """
    Save model weights and configs to ``directory``.

    Layout:
      - policy.pt      : model state_dict
      - config.json    : policy config, rules and version metadata
    """
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    torch.save(policy.model.state_dict(), out_dir / "policy.pt")
    meta = {
        "version": __version__,
        "policy_config": asdict(policy.policy_cfg),
        "rules": rules_to_dict(rules),
    }
    with (out_dir / "config.json").open("w", encoding="utf-8") as f:
        json.dump(meta, f, indent=2)


def load_model_from_checkpoint(
    directory: str | Path,
    device: torch.device | None = None,
) -> Tuple[ThousandPolicyNet, PolicyConfig, Rules]:
    device = device or torch.device("cpu")
    ckpt_dir = Path(directory)
    with (ckpt_dir / "config.json").open("r", encoding="utf-8") as f:
        meta = json.load(f)

    policy_cfg = PolicyConfig(**meta["policy_config"])
    rules = rules_from_dict(meta.get("rules", {}))
    model = build_model(policy_cfg).to(device)
    state_dict = torch.load(ckpt_dir / "policy.pt", map_location=device)
    model.load_state_dict(state_dict)
    model.eval()
    return model, policy_cfg, rules


def load_policy_from_checkpoint(
    directory: str | Path,
    device: torch.device | None = None,
    deterministic: bool = False,
    seed: int | None = None,
) -> NNPolicy:
    """Load a policy saved by ``save_policy_checkpoint``."""
    device = device or torch.device("cpu")
    model, policy_cfg, _ = load_model_from_checkpoint(directory, device=device)
    return NNPolicy(model=model, policy_cfg=policy_cfg, device=device, deterministic=deterministic, seed=seed)


__all__ = [
    "NNPolicy",
    "new_policy",
    "save_policy_checkpoint",
    "load_model_from_checkpoint",
    "load_policy_from_checkpoint",
]
