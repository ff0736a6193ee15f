"""All tunable constants for the inn simulation.

Every magic number in the codebase must reference this file.
"""

# =============================================================================
# TIME
# =============================================================================
SECONDS_PER_MINUTE: int = 60
MINUTES_PER_HOUR: int = 60
HOURS_PER_DAY: int = 24
DAYS_PER_SEASON: int = 30
SEASONS_PER_YEAR: int = 4
MINUTES_PER_DAY: int = MINUTES_PER_HOUR * HOURS_PER_DAY
SEASONS: list[str] = ["Spring", "Summer", "Autumn", "Winter"]

# Game minutes per real second: 1 real second = 1 game hour
DEFAULT_TIME_SCALE: float = 60.0

DAY_START_HOUR: int = 6
NIGHT_START_HOUR: int = 20

# New-game calendar and the fallback for missing save fields
STARTING_MINUTE: float = 0.0
STARTING_HOUR: int = 6
STARTING_DAY: int = 1
STARTING_SEASON: int = 0
STARTING_YEAR: int = 1

# =============================================================================
# RESOURCES
# =============================================================================
# Registry of every known resource. Nested dicts are resource groups.
RESOURCE_REGISTRY: dict[str, dict] = {
    "currency": {
        "gold": 0.0,
    },
    "ingredients": {
        # Basics
        "flour": 0.0,
        "sugar": 0.0,
        "salt": 0.0,
        "eggs": 0.0,
        "milk": 0.0,
        "butter": 0.0,
        "water": 0.0,
        # Fruits
        "apples": 0.0,
        "berries": 0.0,
        # Vegetables
        "potatoes": 0.0,
        "carrots": 0.0,
        # Meats
        "chicken": 0.0,
        "beef": 0.0,
        "fish": 0.0,
        # Magical
        "glowberries": 0.0,
        "dreamleaf": 0.0,
        "moonwater": 0.0,
        # Cooked goods
        "bread": 0.0,
        "apple_pie": 0.0,
    },
    "materials": {
        "wood": 0.0,
        "stone": 0.0,
        "cloth": 0.0,
        "metal": 0.0,
        "glass": 0.0,
        # Magical
        "stardust": 0.0,
        "enchantedwood": 0.0,
        "crystals": 0.0,
        # Crafted goods
        "furniture": 0.0,
    },
    "garden": {
        "seeds": {
            "vegetable": 0.0,
            "fruit": 0.0,
            "herb": 0.0,
            "flower": 0.0,
            "magical": 0.0,
        },
        "water": 0.0,
        "fertilizer": 0.0,
    },
}

# Storage limits. "default" covers its group and nested groups without a default of their own.
RESOURCE_LIMITS: dict[str, dict] = {
    "ingredients": {"default": 50.0},
    "materials": {"default": 30.0},
    "garden": {
        "seeds": {"default": 20.0},
        "water": 100.0,
        "fertilizer": 50.0,
    },
}

# Additive generation (units per game day)
GENERATION_RATES: dict[str, dict] = {
    "garden": {"water": 10.0},  # rain
}

# Multiplicative decay (fraction of current stock per game day)
CONSUMPTION_RATES: dict[str, dict] = {
    "ingredients": {"default": 0.10},
}

# Fixed upkeep (units per game day, used by guests and staff)
UPKEEP_RATES: dict[str, dict] = {}

STARTING_RESOURCES: dict[str, dict] = {
    "currency": {"gold": 100.0},
    "ingredients": {
        "flour": 10.0,
        "sugar": 5.0,
        "salt": 5.0,
        "eggs": 6.0,
        "milk": 2.0,
        "butter": 3.0,
        "water": 10.0,
    },
    "materials": {
        "wood": 15.0,
        "stone": 10.0,
        "cloth": 5.0,
    },
    "garden": {
        "seeds": {"vegetable": 5.0, "fruit": 3.0, "herb": 2.0},
        "water": 50.0,
        "fertilizer": 10.0,
    },
}

# =============================================================================
# MARKET
# =============================================================================
MARKET_PRICES: dict[str, dict] = {
    "ingredients": {
        "flour": 2.0,
        "sugar": 1.0,
        "salt": 1.0,
        "eggs": 3.0,
        "milk": 2.0,
        "butter": 2.0,
        "water": 1.0,
        "apples": 1.0,
        "berries": 2.0,
        "potatoes": 1.0,
        "carrots": 1.0,
        "chicken": 5.0,
        "beef": 8.0,
        "fish": 4.0,
        "glowberries": 15.0,
        "dreamleaf": 20.0,
        "moonwater": 25.0,
        "bread": 6.0,
    },
    "materials": {
        "wood": 3.0,
        "stone": 4.0,
        "cloth": 5.0,
        "metal": 8.0,
        "glass": 10.0,
        "stardust": 30.0,
        "enchantedwood": 25.0,
        "crystals": 20.0,
        "furniture": 40.0,
    },
    "garden": {
        "seeds": {
            "vegetable": 2.0,
            "fruit": 3.0,
            "herb": 4.0,
            "flower": 2.0,
            "magical": 15.0,
        },
        "fertilizer": 5.0,
    },
}

SELL_PRICE_MULTIPLIER: float = 0.5
CURRENCY_CATEGORY: str = "currency"
CURRENCY_TYPE: str = "gold"

# =============================================================================
# RECIPES
# =============================================================================
RECIPES: dict[str, dict] = {
    "bread": {
        "name": "Bread",
        "inputs": {"ingredients": {"flour": 2, "water": 1}},
        "outputs": {"ingredients": {"bread": 1}},
        "crafting_time_minutes": 30,
        "required_skill": "cooking",
        "skill_level": 1,
    },
    "apple_pie": {
        "name": "Apple Pie",
        "inputs": {"ingredients": {"flour": 1, "apples": 3, "sugar": 1, "butter": 1}},
        "outputs": {"ingredients": {"apple_pie": 1}},
        "crafting_time_minutes": 45,
        "required_skill": "cooking",
        "skill_level": 2,
    },
    "basic_furniture": {
        "name": "Basic Furniture",
        "inputs": {"materials": {"wood": 5}},
        "outputs": {"materials": {"furniture": 1}},
        "crafting_time_minutes": 60,
        "required_skill": "crafting",
        "skill_level": 1,
    },
}

# =============================================================================
# PLAYER / INN
# =============================================================================
INITIAL_PLAYER: dict = {
    "name": "Innkeeper",
    "skills": {
        "cooking": 1,
        "gardening": 1,
        "crafting": 1,
        "diplomacy": 1,
    },
    "inventory": [],
}

INITIAL_INN: dict = {
    "name": "The Crossroads Inn",
    "reputation": 1,
    "rooms": [
        {"id": "room1", "name": "Cozy Corner", "quality": 1, "occupied": False},
        {"id": "room2", "name": "Forest View", "quality": 1, "occupied": False},
    ],
    "staff": [],
    "upgrades": [],
}

# =============================================================================
# INTERACTIONS
# =============================================================================
INTERACTION_DWELL_SECONDS: float = 3.0
INTERACTION_HISTORY_LIMIT: int = 100  # records kept per target
DEFAULT_DIALOG_TOPIC: str = "greeting"
DIALOG_INTERACTION: str = "dialog"
FIRST_VISIT_VARIANT: str = "regular"
RETURNING_VARIANT: str = "returning"
ROOM_INTERACTIONS: list[str] = ["inspect", "clean"]
GUEST_INTERACTIONS: list[str] = ["dialog"]

DIALOG_OPTIONS: dict[str, object] = {
    "greeting": {
        "regular": [
            "Welcome to the Crossroads Inn!",
            "Hello there! How can I help you today?",
            "Good day! What brings you to our inn?",
        ],
        "returning": [
            "Welcome back! It's good to see you again.",
            "You've returned! How was your journey?",
            "A familiar face! How have you been?",
        ],
    },
    "farewell": {
        "satisfied": [
            "Thank you for your hospitality! I'll be sure to return.",
            "What a lovely stay. Until next time!",
        ],
        "neutral": [
            "Thank you. I should be on my way now.",
            "Time for me to continue my journey. Goodbye.",
        ],
    },
    "request": [
        "I'm looking for a place to rest. Do you have any rooms available?",
        "I'm famished! What's cooking today?",
        "I'm new to these parts. What can you tell me about this area?",
    ],
}

# =============================================================================
# PERSISTENCE
# =============================================================================
DEFAULT_SAVE_PATH: str = "saves/hearth_save.json"
AUTOSAVE_INTERVAL_SECONDS: float = 300.0  # 5 real minutes

# =============================================================================
# HEADLESS RUNS / REPORTS
# =============================================================================
DEFAULT_TICK_SECONDS: float = 1.0
HEADLESS_TIME_SCALE: float = 1.0  # 1 real second = 1 game minute
HEADLESS_TICK_SECONDS: float = 5.0
BAKE_BATCH_SIZE: int = 2
RESTOCK_FLOUR_BELOW: float = 6.0
RESTOCK_FLOUR_AMOUNT: float = 10.0
SELL_BREAD_ABOVE: float = 4.0
REPORT_DPI: int = 150
MORNING_CHORES_HOUR: int = 7   # restock and start baking
GUEST_ARRIVAL_HOUR: int = 12
EVENING_MARKET_HOUR: int = 18  # sell surplus bread
GUEST_NAMES: list[str] = ["Wandering Bard", "Tired Merchant", "Forest Ranger", "Traveling Mage"]
