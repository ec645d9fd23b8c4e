"""
Broker payout schedule.

Each contract tag maps to one payout percentage per stake band. A schedule
with a single value pays the same across the whole stake range.
"""

# Lower and upper stake of each band; None stands for the configured
# global minimum/maximum stake.
STAKE_BANDS = (
    (None, 0.49),
    (0.50, 0.74),
    (0.75, 0.99),
    (1.00, 1.99),
    (2.00, 2.99),
    (3.00, 4.99),
    (5.00, None),
)

_DIFFERS = (5.71, 6.00, 8.00, 9.00, 9.50, 9.67, 9.67)
_EVEN_ODD = (88.57, 92.00, 94.67, 95.00, 95.50, 95.33, 95.40)
_RISE_FALL = (77.14, 78.00, 78.67, 79.00, 79.50, 79.33, 79.40)
_ONE_OF_TEN = (794.30, 792.00, 793.30, 793.00, 793.00, 793.00, 792.80)
_TWO_OF_TEN = (371.40, 372.00, 372.00, 372.00, 371.50, 371.70, 371.60)
_THREE_OF_TEN = (214.30, 220.00, 220.00, 221.00, 220.50, 220.70, 220.60)
_FOUR_OF_TEN = (137.10, 140.00, 142.70, 143.00, 142.50, 142.70, 142.80)
_FIVE_OF_TEN = (88.60, 92.00, 94.70, 95.00, 95.50, 95.30, 95.40)
_SIX_OF_TEN = (51.70, 60.00, 62.70, 63.00, 63.50, 63.30, 63.40)
_SEVEN_OF_TEN = (34.30, 38.00, 38.75, 40.00, 40.50, 40.30, 40.50)
_EIGHT_OF_TEN = (17.10, 20.00, 21.30, 23.00, 23.00, 23.00, 23.20)

DEFAULT_PAYOUT_SCHEDULE: dict[str, tuple[float, ...]] = {
    "DIGITMATCH": (7.00,),
    "DIGITDIFF": _DIFFERS,
    "DIGITDIFF1326": _DIFFERS,
    "DIGITEVEN": _EVEN_ODD,
    "DIGITODD": _EVEN_ODD,
    "CALLE": _RISE_FALL,
    "PUTE": _RISE_FALL,
    "DIGITUNDER": _DIFFERS,
    "DIGITUNDER_9": _DIFFERS,
    "DIGITUNDER_8": _EIGHT_OF_TEN,
    "DIGITUNDER_7": _SEVEN_OF_TEN,
    "DIGITUNDER_6": _SIX_OF_TEN,
    "DIGITUNDER_5": _FIVE_OF_TEN,
    "DIGITUNDER_4": _FOUR_OF_TEN,
    "DIGITUNDER_3": _THREE_OF_TEN,
    "DIGITUNDER_2": _TWO_OF_TEN,
    "DIGITUNDER_1": _ONE_OF_TEN,
    "DIGITOVER": _DIFFERS,
    "DIGITOVER_0": _DIFFERS,
    "DIGITOVER_1": _EIGHT_OF_TEN,
    "DIGITOVER_2": _SEVEN_OF_TEN,
    "DIGITOVER_3": (57.10,) + _SIX_OF_TEN[1:],
    "DIGITOVER_4": _FIVE_OF_TEN,
    "DIGITOVER_5": _FOUR_OF_TEN,
    "DIGITOVER_6": _THREE_OF_TEN,
    "DIGITOVER_7": _TWO_OF_TEN,
    "DIGITOVER_8": _ONE_OF_TEN,
}
