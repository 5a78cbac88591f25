"""Awareness tips rotated on screen while a scan is running."""

AWARENESS_TIPS: tuple[str, ...] = (
    "We burn calories while we are asleep because brain activity requires energy.",
    "During the measurement, please do not speak or move.",
    "Always sleep on your back straight since it allows your neck and spine in a neutral position.",
    "Heart pumps about 2,000 gallons of blood every day.",
    "Your heart beats about 100,000 times every day.",
    "Walking for 30 minutes a day can reduce the risk of heart disease.",
    "Laughing increases blood flow and boosts immunity.",
    "Deep breathing can lower blood pressure and reduce stress.",
    "The human brain uses 20% of the body's total energy.",
    "Drinking water boosts your metabolism by up to 30%.",
)
