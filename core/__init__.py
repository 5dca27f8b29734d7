"""
Facility tracker core.

Modules:
  filters - FilterSpec and the AND-ed predicate builder
  aggregation - capacity and generation roll-ups over the facility store
  facility_updater - validated single-record facility update
  markers / clustering / marker_layer - map marker projection and clustering
  filter_state - filter selection with stale-result suppression
"""

from .filters import FilterSpec, build_predicates, parse_filter_params
from .aggregation import AggregationEngine
from .facility_updater import update_facility, validate_update
from .marker_layer import build_marker_layer
