#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
import logging

import hydra
from omegaconf import DictConfig

from cadence.config import load_config
from cadence.interactive.display import display_grid
from cadence.recurrence.calendar_grid import build_grid, visible_range
from cadence.recurrence.regeneration import RegenerationCoordinator
from cadence.storage.occurrence_store import new_store

logger = logging.getLogger(__name__)


def preview(cfg: DictConfig):
    engine_config = load_config(cfg.engine)
    with new_store() as store:
        coordinator = RegenerationCoordinator(store, engine_config)
        coordinator.create_schedule(
            cfg.event_id,
            start=datetime.datetime.fromisoformat(cfg.start),
            end=datetime.datetime.fromisoformat(cfg.end),
            all_day=cfg.all_day,
        )
        total = coordinator.regenerate(cfg.event_id, cfg.rule)
        logger.info("Rule %r expands to %d occurrences", cfg.rule, total)
        displayed = visible_range(cfg.month, engine_config.start_of_week)
        cells = build_grid(
            cfg.month,
            engine_config.start_of_week,
            store.occurrences_between(displayed.start, displayed.end),
            tz=engine_config.tzinfo,
        )
    in_month = [c for c in cells if c.is_in_current_period]
    title = in_month[0].date.strftime("%B %Y")
    display_grid(cells, engine_config.start_of_week, title=title)


@hydra.main(
    version_base=None,
    config_name="preview_month",
    config_path="pkg://cadence.configs.endpoints",
)
def preview_month(cfg: DictConfig):
    preview(cfg)


if __name__ == "__main__":
    preview_month()
