"""Human-readable metric definitions for the app."""

METRIC_GUIDE = [
    {
        "Metric": "Jade consumption",
        "Meaning": "Premium currency spent, summed from the consumption amount column.",
        "Formula": "sum(Consumption Amount)",
    },
    {
        "Metric": "Payment tier",
        "Meaning": "Spending segment of the player: Whale, BigSpender, MidSpender, SmallSpender, FreeUser.",
        "Formula": "Payment Tier column (土豪/大R/中R/小R/平民 in Chinese exports)",
    },
    {
        "Metric": "Trend line",
        "Meaning": "Least-squares straight line through the daily values, used as a baseline.",
        "Formula": "value = slope * day_index + intercept",
    },
    {
        "Metric": "Daily mean",
        "Meaning": "Average consumption per day present in the file.",
        "Formula": "sum(daily values) / days",
    },
    {
        "Metric": "Peak / valley",
        "Meaning": "Local high or low that deviates from the mean by more than half a standard deviation.",
        "Formula": "|value - mean| > 0.5 * std(values)",
    },
    {
        "Metric": "Buyers",
        "Meaning": "Purchasing characters per day, taken from the role count column.",
        "Formula": "sum(Role Count)",
    },
    {
        "Metric": "Main channels",
        "Meaning": "The four consumption channels with the highest volume; all others are grouped as Other.",
        "Formula": "top 4 of sum(Consumption Amount) by channel",
    },
    {
        "Metric": "Consumption per buyer",
        "Meaning": "Average jade spent per buyer within a tier.",
        "Formula": "round(tier consumption / tier role count)",
    },
    {
        "Metric": "Cosmetic spending",
        "Meaning": "Appearance-only spending: Unlock Appearance, Monthly Costume Lottery, Dream-Weaving Voucher exchange.",
        "Formula": "sum(amount where rule = cosmetic)",
    },
    {
        "Metric": "Power spending",
        "Meaning": "All other positive spending, which buys gameplay value.",
        "Formula": "sum(amount where rule = power)",
    },
    {
        "Metric": "ARPU",
        "Meaning": "Average jade consumption per daily active user of a tier.",
        "Formula": "tier consumption / sum(daily DAU)",
    },
    {
        "Metric": "Growth rate",
        "Meaning": "Change between the first and the last day in the file.",
        "Formula": "(last - first) / first * 100",
    },
]
