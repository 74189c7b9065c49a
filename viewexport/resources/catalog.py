"""Built-in resources exported from the traffic management database."""

from __future__ import annotations

from viewexport.resources.registry import ResourceRegistry
from viewexport.resources.sql import SqlResource


def _json_rows(columns: str, view: str, order_by: str) -> str:
    return (
        "SELECT row_to_json(r)::text FROM ("
        f"SELECT {columns} FROM {view} ORDER BY {order_by}"
        ") r"
    )


BUILTIN_RESOURCES: tuple[SqlResource, ...] = (
    SqlResource(
        name="incidents",
        file_name="incident",
        sql=_json_rows(
            "name, event_date, description, road, direction, lat, lon, camera, impact, cleared, confirmed",
            "incident_view",
            "event_date, name",
        ),
    ),
    SqlResource(
        name="cameras",
        file_name="camera_pub",
        sql=_json_rows("name, publish, location, lat, lon", "camera_view", "name"),
    ),
    SqlResource(
        name="dms",
        file_name="dms_pub",
        sql=_json_rows("name, sign_config, roadway, road_dir, location, lat, lon", "dms_view", "name"),
    ),
    SqlResource(
        name="sign_message",
        sql=_json_rows(
            "name, sign_config, incident, multi, beacon_enabled, msg_priority, duration",
            "sign_message_view",
            "name",
        ),
    ),
    SqlResource(
        name="parking_area",
        sql=_json_rows(
            "site_id, time_stamp_static, relevant_highway, reference_post, exit_id, facility_name, "
            "street_adr, city, state, zip, time_zone, ownership, capacity, low_threshold, amenities",
            "parking_area_view",
            "site_id",
        ),
    ),
    SqlResource(
        name="system_attribute",
        sql=_json_rows("name, value", "system_attribute_view", "name"),
    ),
)


def default_registry() -> ResourceRegistry:
    """Registry of every built-in resource, in bootstrap order."""
    return ResourceRegistry(BUILTIN_RESOURCES)
