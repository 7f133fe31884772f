# view_mode_registry.py
import logging
from typing import Dict, List, Optional

from explorational_strategy import ExplorationalStrategy
from layout_config import DEFAULT_VIEW_MODE, LayoutConfig
from layout_config import config as default_config
from navigational_strategy import NavigationalStrategy
from profile_strategy import ProfileStrategy
from scientific_strategy import ScientificStrategy
from view_mode_strategy import SystemContext, TransitionResult, ViewModeStrategy


class ViewModeRegistry:
    """Resolves view-mode ids to strategy instances.

    One registry is built at start-up and passed to whoever needs strategies;
    unknown ids resolve to the explorational strategy with a logged warning.
    """

    def __init__(self, layout_config: Optional[LayoutConfig] = None):
        self.config = layout_config or default_config
        self._strategies: Dict[str, ViewModeStrategy] = {}
        for strategy_cls in (ExplorationalStrategy, NavigationalStrategy, ProfileStrategy, ScientificStrategy):
            self.register(strategy_cls(self.config))

    def register(self, strategy: ViewModeStrategy):
        if not strategy.id:
            raise ValueError(f"Strategy {strategy!r} has no id")
        if strategy.id in self._strategies:
            logging.info(f"Replacing registered strategy for view mode '{strategy.id}'.")
        self._strategies[strategy.id] = strategy

    def get_strategy(self, view_mode: Optional[str]) -> ViewModeStrategy:
        strategy = self._strategies.get(view_mode) if view_mode else None
        if strategy is None:
            logging.warning(f"Unknown view mode '{view_mode}', falling back to '{DEFAULT_VIEW_MODE}'.")
            strategy = self._strategies[DEFAULT_VIEW_MODE]
        return strategy

    def available_modes(self) -> List[str]:
        return list(self._strategies)

    def switch_mode(self, from_mode: Optional[str], to_mode: str, context: SystemContext) -> TransitionResult:
        """Runs the exit hook of the current mode and the enter hook of the next one."""
        previous = self.get_strategy(from_mode) if from_mode else None
        target = self.get_strategy(to_mode)

        exit_result = previous.on_view_mode_exit(target, context) if previous else TransitionResult()
        enter_result = target.on_view_mode_enter(previous, context)
        return TransitionResult(
            success=exit_result.success and enter_result.success,
            warnings=exit_result.warnings + enter_result.warnings,
            errors=exit_result.errors + enter_result.errors,
            camera_reset_required=exit_result.camera_reset_required or enter_result.camera_reset_required,
            cache_invalidation_required=(exit_result.cache_invalidation_required
                                         or enter_result.cache_invalidation_required),
        )
