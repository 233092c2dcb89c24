"""
Job types understood by the remote runner.

A job type owns the model-specific part of a submission: it checks the
user's parameters and shapes them into the ``parameters`` object the
run-job endpoint expects. The monitor itself is the same for every type.

Parameters arrive as a flat dict, usually of strings from the command line
or a saved configuration, and are coerced here. ``location`` is always
required, as ``"lat, lng"`` or as a ``{"lat": .., "lng": ..}`` object.
"""

import copy
from typing import Any, Dict, List, Optional, Tuple


class ValidationError(ValueError):
    def __init__(self, model, problems):
        self.model = model
        self.problems = list(problems)
        super().__init__("{}: {}".format(model, "; ".join(self.problems)))


def parseLocation(value) -> Optional[Tuple[float, float]]:
    """Return (lat, lng) from "lat, lng" or a lat/lng mapping, else None."""
    if isinstance(value, dict):
        parts = [value.get("lat"), value.get("lng")]
    elif isinstance(value, str) and "," in value:
        parts = value.split(",", 1)
    else:
        return None
    try:
        lat, lng = (float(str(part).strip()) for part in parts)
    except (TypeError, ValueError):
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return lat, lng


class _Checker(object):
    """Collects every problem with a parameter set before giving up."""

    def __init__(self, model, params):
        self.model = model
        self.params = params
        self.problems = []

    def location(self):
        raw = self.params.get("location")
        coords = parseLocation(raw)
        if coords is None:
            if raw in (None, ""):
                self.problems.append("Please select a location first")
            else:
                self.problems.append(
                    f"location must be 'lat, lng' in degrees, got {raw!r}")
        return coords

    def text(self, key, default=None):
        value = self.params.get(key, default)
        if value is None or str(value).strip() == "":
            self.problems.append(f"{key} is required")
            return None
        return str(value).strip()

    def number(self, key, default, kind=float, minimum=None):
        value = self.params.get(key, default)
        try:
            num = kind(value)
        except (TypeError, ValueError):
            self.problems.append(f"{key} must be a number, got {value!r}")
            return None
        if minimum is not None and num < minimum:
            self.problems.append(f"{key} must be at least {minimum}, got {num}")
            return None
        return num

    def choice(self, key, default, choices):
        value = self.params.get(key, default)
        for choice in choices:
            if str(choice) == str(value):
                return choice
        self.problems.append("{} must be one of {}, got {!r}".format(
            key, ", ".join(str(c) for c in choices), value))
        return None

    def done(self):
        if self.problems:
            raise ValidationError(self.model, self.problems)


class JobType(object):
    """Base class; subclasses set ``name`` and implement ``_build``."""

    name: str = ""
    description: str = ""

    def _build(self, check: _Checker) -> Dict[str, Any]:
        raise NotImplementedError

    def buildParameters(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate params and return the remote ``parameters`` object.

        Raises:
            ValidationError: Listing every problem found
        """
        check = _Checker(self.name, params or {})
        built = self._build(check)
        check.done()
        return built

    def submitPayload(self, params, userId):
        return {
            "model": self.name,
            "parameters": self.buildParameters(params),
            "user_id": userId or "anonymous",
        }

    def defaultConfigName(self, params):
        coords = parseLocation(params.get("location"))
        if coords is None:
            return self.name
        return "{} - {:.3f}, {:.3f}".format(self.name, *coords)

    def __repr__(self):
        return f"<JobType {self.name}>"


def _scepter(check, coords):
    return {
        "location": "{:.4f}, {:.4f}".format(*coords) if coords else None,
        "feedstock": check.text("feedstock"),
        "particleSize": check.text("particleSize"),
        "applicationRate": check.text("applicationRate"),
        "targetPH": check.text("targetPH"),
        "statisticPeriod": check.text("statisticPeriod", "7d"),
    }


def _latLng(coords):
    return {"lat": coords[0], "lng": coords[1]} if coords else None


class ScepterJob(JobType):
    name = "SCEPTER"
    description = "Soil weathering model for a single site"

    def _build(self, check):
        return _scepter(check, check.location())


class DrnJob(JobType):
    name = "DRN"
    description = "River network model over a range of flow paths"

    def _build(self, check):
        coords = check.location()
        numStart = check.number("numStart", 1, kind=int, minimum=1)
        numEnd = check.number("numEnd", 40, kind=int, minimum=1)
        if numStart is not None and numEnd is not None and numEnd < numStart:
            check.problems.append(
                f"numEnd ({numEnd}) must not be below numStart ({numStart})")
        return {
            "location": _latLng(coords),
            "numStart": numStart,
            "numEnd": numEnd,
            "addFlag": check.choice("addFlag", "middle", ["min", "middle", "max"]),
            "deploymentScenario": check.choice("deploymentScenario", 0, [0, 1]),
            "yearRun": check.number("yearRun", 2, minimum=0),
            "timeStep": check.number("timeStep", 0.1, minimum=0),
        }


class ScepterDrnJob(JobType):
    name = "SCEPTER+DRN"
    description = "SCEPTER site model feeding the DRN river network model"

    def _build(self, check):
        coords = check.location()
        return {
            "scepter": _scepter(check, coords),
            "drn": {
                "location": _latLng(coords),
                "numStart": check.number("numStart", 1, kind=int, minimum=1),
                "yearRun": check.number("yearRun", 2, minimum=0),
                "timeStep": check.number("timeStep", 0.1, minimum=0),
            },
        }


DEFAULT_ATS_LAYER = {
    "name": "Layer 1",
    "soilType": "Sandy Loam",
    "porosity": "0.45",
    "permeability": "1e-12",
    "saturation": "0.1",
    "vanGenuchtenAlpha": "0.08",
    "vanGenuchtenN": "1.6",
}
_ATS_LAYER_NUMBERS = ("porosity", "permeability", "saturation",
                      "vanGenuchtenAlpha", "vanGenuchtenN")


class AtsJob(JobType):
    name = "ATS"
    description = "Layered subsurface hydrology simulation"

    def _layers(self, check) -> List[Dict[str, Any]]:
        layers = check.params.get("layers")
        if layers is None:
            return [copy.deepcopy(DEFAULT_ATS_LAYER)]
        if not isinstance(layers, list) or not layers:
            check.problems.append("layers must be a non-empty list")
            return []
        built = []
        for idx, layer in enumerate(layers):
            if not isinstance(layer, dict):
                check.problems.append(f"layer {idx + 1} must be an object")
                continue
            merged = dict(DEFAULT_ATS_LAYER, name=f"Layer {idx + 1}")
            merged.update(layer)
            for key in _ATS_LAYER_NUMBERS:
                try:
                    float(merged[key])
                except (TypeError, ValueError):
                    check.problems.append(
                        f"layer {merged['name']!r}: {key} must be a number, "
                        f"got {merged[key]!r}")
            built.append(merged)
        return built

    def _build(self, check):
        return {
            "location": _latLng(check.location()),
            "simulationYears": check.number(
                "simulationYears", 5, kind=int, minimum=1),
            "layers": self._layers(check),
        }


BUILTIN_JOB_TYPES = (ScepterJob, DrnJob, ScepterDrnJob, AtsJob)
