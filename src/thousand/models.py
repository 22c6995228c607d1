"""
Policy/value network over ``thousand.env`` observations.

An observation opens with CARD_PLANES bit planes over the 24 cards (hand,
trick on the table, cards this seat won, cards anyone won) and ends with
round and score features. The network reads the planes card by card: one
small layer shared by all cards maps a card's plane bits, and a learned
embedding says which card it is. The round features get their own layer;
both parts meet in a LayerNorm trunk that feeds

- logits over the global action space (size depends on the bid range)
- a scalar state-value estimate
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import torch
from torch import nn

from .env import CARD_PLANES, NUM_CARDS, OBS_DIM

ARCH_NAME = "thousand_cards_v1"
CARD_FEATURES: int = CARD_PLANES * NUM_CARDS


class CardPlaneEncoder(nn.Module):
    """(batch, CARD_PLANES * NUM_CARDS) bits -> (batch, NUM_CARDS * card_dim)."""

    def __init__(self, card_dim: int) -> None:
        super().__init__()
        self.plane_proj = nn.Linear(CARD_PLANES, card_dim)
        self.identity = nn.Embedding(NUM_CARDS, card_dim)
        self.out_dim = NUM_CARDS * card_dim

    def forward(self, planes: torch.Tensor) -> torch.Tensor:  # type: ignore[override]
        per_card = planes.reshape(-1, CARD_PLANES, NUM_CARDS).transpose(1, 2)
        x = self.plane_proj(per_card) + self.identity.weight
        return torch.relu(x).flatten(1)


class ThousandPolicyNet(nn.Module):
    """
    Input (batch, obs_dim); output logits (batch, num_actions) and value (batch,).
    """

    def __init__(
        self,
        obs_dim: int,
        num_actions: int,
        hidden_dim: int = 128,
        card_dim: int = 8,
        trunk_layers: int = 2,
    ) -> None:
        super().__init__()
        if obs_dim <= CARD_FEATURES:
            raise ValueError(f"obs_dim {obs_dim} leaves no room for round features")
        if trunk_layers < 1:
            raise ValueError(f"trunk_layers must be >= 1, got {trunk_layers}")
        self.cards = CardPlaneEncoder(card_dim)
        self.round_features = nn.Sequential(nn.Linear(obs_dim - CARD_FEATURES, hidden_dim), nn.ReLU())

        layers: list[nn.Module] = []
        width = self.cards.out_dim + hidden_dim
        for _ in range(trunk_layers):
            layers += [nn.Linear(width, hidden_dim), nn.LayerNorm(hidden_dim), nn.ReLU()]
            width = hidden_dim
        self.trunk = nn.Sequential(*layers)
        self.policy_head = nn.Linear(hidden_dim, num_actions)
        self.value_head = nn.Linear(hidden_dim, 1)

    def forward(self, obs: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:  # type: ignore[override]
        x = torch.cat([self.cards(obs[:, :CARD_FEATURES]), self.round_features(obs[:, CARD_FEATURES:])], dim=-1)
        x = self.trunk(x)
        return self.policy_head(x), self.value_head(x).squeeze(-1)


@dataclass
class PolicyConfig:
    """Architecture of a saved policy; stored as JSON next to the weights."""

    num_actions: int
    arch_name: str = ARCH_NAME
    obs_dim: int = OBS_DIM
    hidden_dim: int = 128
    card_dim: int = 8
    trunk_layers: int = 2


def build_model(cfg: PolicyConfig) -> ThousandPolicyNet:
    if cfg.arch_name != ARCH_NAME:
        raise ValueError(f"Unknown policy architecture {cfg.arch_name!r}, expected {ARCH_NAME!r}")
    return ThousandPolicyNet(
        cfg.obs_dim,
        cfg.num_actions,
        hidden_dim=cfg.hidden_dim,
        card_dim=cfg.card_dim,
        trunk_layers=cfg.trunk_layers,
    )


__all__ = ["ARCH_NAME", "CardPlaneEncoder", "ThousandPolicyNet", "PolicyConfig", "build_model"]
