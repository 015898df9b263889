from typing import Literal


existing_drivers = Literal["ovh"]


billing_periods = Literal["hourly", "monthly"]
