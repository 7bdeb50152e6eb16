"""Input validation functions for Solar Private-Wire Analyzer.

Each validator returns a tuple of (is_valid: bool, message: str).
Messages describe errors or warnings for user display. Validation happens
here, before inputs reach the projection engine.
"""

from typing import List, Mapping, Tuple, Union

from src.models.project import ProjectInputs


class InputValidationError(ValueError):
    """Raised when project inputs fail validation.

    Attributes:
        messages: All error and warning messages collected.
    """

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages) or "Invalid project inputs.")


def validate_capacity(mw: float) -> Tuple[bool, str]:
    """Validate installed capacity in MW.

    Args:
        mw: Project nameplate capacity.

    Returns:
        (is_valid, message) tuple.
    """
    if mw <= 0:
        return False, "Capacity must be greater than 0 MW."
    if mw > 500:
        return True, f"Warning: {mw} MW is unusually large for a private-wire scheme."
    return True, ""


def validate_discount_rate(rate: float) -> Tuple[bool, str]:
    """Validate discount rate.

    Args:
        rate: Discount rate as decimal (e.g., 0.10 for 10%).

    Returns:
        (is_valid, message) tuple.
    """
    if rate <= -1:
        return False, "Discount rate must be greater than -100%."
    if rate < 0:
        return True, "Warning: Negative discount rate. Verify this is correct."
    if rate > 0.25:
        return True, "Warning: Discount rate above 25% is unusual."
    return True, ""


def validate_degradation(rate: float) -> Tuple[bool, str]:
    """Validate annual generation degradation."""
    if not 0 <= rate < 1:
        return False, "Degradation rate must be at least 0% and below 100%."
    if rate > 0.02:
        return True, "Warning: Degradation above 2%/year is high for modern PV modules."
    return True, ""


def validate_escalation(rate: float) -> Tuple[bool, str]:
    """Validate annual opex escalation."""
    if rate <= -1:
        return False, "Opex escalation must be greater than -100%."
    if rate > 0.10:
        return True, "Warning: Opex escalation above 10%/year is unusual."
    return True, ""


def validate_project_life(years: int) -> Tuple[bool, str]:
    """Validate project life in whole years."""
    if int(years) != years or years < 1:
        return False, "Project life must be a whole number of years, at least 1."
    if years > 50:
        return True, f"Warning: {years}-year life exceeds typical PV asset life."
    return True, ""


def validate_revenue_split(percent_ppa: float, percent_export: float) -> Tuple[bool, str]:
    """Validate the split of generation between PPA and export channels.

    The two shares need not sum to 100%; any remainder is unmonetized.

    Args:
        percent_ppa: Share consumed at the PPA price (%).
        percent_export: Share exported at the export price (%).

    Returns:
        (is_valid, message) tuple.
    """
    if percent_ppa < 0 or percent_export < 0:
        return False, "Consumption percentages must be >= 0%."
    total = percent_ppa + percent_export
    if total > 100:
        return True, (f"Warning: PPA and export shares total {total:.1f}%, "
                      f"more than the generation available.")
    if total < 100:
        return True, f"Warning: {100 - total:.1f}% of generation is unmonetized."
    return True, ""


def validate_generation(generation_per_mw: float) -> Tuple[bool, str]:
    """Validate year-1 specific yield in MWh/MW."""
    if generation_per_mw < 0:
        return False, "Generation per MW must be >= 0 MWh."
    if generation_per_mw == 0:
        return True, "Warning: Zero generation. LCOE will be undefined."
    if generation_per_mw > 2500:
        return True, "Warning: Generation above 2,500 MWh/MW exceeds any PV capacity factor."
    return True, ""


def validate_inputs(inputs: ProjectInputs) -> Tuple[bool, List[str]]:
    """Run all validations on a complete set of inputs.

    Args:
        inputs: Inputs to validate.

    Returns:
        (is_valid, messages) where messages includes all errors and warnings.
    """
    messages = []
    is_valid = True

    checks = [
        validate_capacity(inputs.mw),
        validate_discount_rate(inputs.discount_rate),
        validate_degradation(inputs.degradation_rate),
        validate_escalation(inputs.opex_escalation),
        validate_project_life(inputs.project_life),
        validate_generation(inputs.generation_per_mw),
        validate_revenue_split(inputs.percent_consumption_ppa, inputs.percent_consumption_export),
    ]

    for valid, msg in checks:
        if not valid:
            is_valid = False
        if msg:
            messages.append(msg)

    if inputs.power_price == 0 and inputs.export_price == 0:
        messages.append("Warning: Both prices are zero. The project earns no revenue.")

    return is_valid, messages


def require_valid_inputs(data: Union[ProjectInputs, Mapping]) -> ProjectInputs:
    """Build (if needed) and validate inputs, raising on any error.

    Args:
        data: A ProjectInputs instance or a dict of input fields.

    Returns:
        The validated ProjectInputs.

    Raises:
        InputValidationError: If the inputs are malformed or out of range.
    """
    if isinstance(data, ProjectInputs):
        inputs = data
    else:
        try:
            inputs = ProjectInputs.from_dict(dict(data))
        except (TypeError, ValueError) as e:
            raise InputValidationError([str(e)]) from e

    is_valid, messages = validate_inputs(inputs)
    if not is_valid:
        raise InputValidationError(messages)
    return inputs
