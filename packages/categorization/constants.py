"""Category constants for transaction classification.

Root categories are fixed reference data. Every category id written to a
transaction or a rule must be one of them.
"""

from enum import Enum
from typing import Dict, List, Optional


class RootCategory(str, Enum):
    """Top-level spending domains."""

    INCOME = "income"
    HOUSING = "housing"
    UTILITIES = "utilities"
    FOOD = "food"
    TRANSPORT = "transport"
    TRAVEL = "travel"
    HEALTH = "health"
    SHOPPING = "shopping"
    DIGITAL = "digital"
    ENTERTAINMENT = "entertainment"
    EDUCATION = "education"
    INVESTMENTS = "investments"
    SUBSCRIPTIONS = "subscriptions"
    LOANS = "loans"
    FEES = "fees"
    TRANSFERS = "transfers"
    BUSINESS = "business"
    MISC = "misc"


UNCATEGORIZED = "uncategorized"

ROOT_CATEGORIES: List[Dict[str, str]] = [
    {"id": "income", "label": "Income", "icon": "💰", "color": "#00b17c", "description": "Salary, refunds, cashback"},
    {"id": "housing", "label": "Housing", "icon": "🏠", "color": "#6366f1", "description": "Rent, maintenance, repairs"},
    {"id": "utilities", "label": "Utilities", "icon": "💡", "color": "#8b5cf6", "description": "Electricity, water, internet, phone"},
    {"id": "food", "label": "Food & Groceries", "icon": "🍔", "color": "#f59e0b", "description": "Restaurants, groceries, food delivery"},
    {"id": "transport", "label": "Transport", "icon": "🚗", "color": "#3b82f6", "description": "Local cabs, fuel, metro, daily commute"},
    {"id": "travel", "label": "Travel & Tourism", "icon": "✈️", "color": "#0ea5e9", "description": "Flights, hotels, train bookings, vacations"},
    {"id": "health", "label": "Health", "icon": "🏥", "color": "#ef4444", "description": "Medical, pharmacy, insurance, fitness"},
    {"id": "shopping", "label": "Shopping", "icon": "🛍️", "color": "#ec4899", "description": "Clothes, electronics, household items"},
    {"id": "digital", "label": "Digital Goods", "icon": "💻", "color": "#7c3aed", "description": "Apps, software, digital media, online services"},
    {"id": "entertainment", "label": "Entertainment", "icon": "🎮", "color": "#a855f7", "description": "Movies, games, hobbies, events"},
    {"id": "education", "label": "Education", "icon": "📚", "color": "#14b8a6", "description": "Courses, books, school fees"},
    {"id": "investments", "label": "Investments", "icon": "📈", "color": "#10b981", "description": "Mutual funds, stocks, trading, SIPs"},
    {"id": "subscriptions", "label": "Subscriptions", "icon": "🔄", "color": "#f97316", "description": "Streaming, software, memberships"},
    {"id": "loans", "label": "Loans & EMIs", "icon": "💳", "color": "#dc2626", "description": "Credit cards, loans, EMI payments"},
    {"id": "fees", "label": "Fees & Charges", "icon": "🏦", "color": "#6b7280", "description": "Bank fees, service charges, penalties"},
    {"id": "transfers", "label": "Transfers", "icon": "↔️", "color": "#64748b", "description": "Personal transfers, self transfers"},
    {"id": "business", "label": "Business", "icon": "💼", "color": "#059669", "description": "Business income, expenses, freelance"},
    {"id": "misc", "label": "Miscellaneous", "icon": "📌", "color": "#94a3b8", "description": "Other expenses"},
]

_CATALOG = {entry["id"]: entry for entry in ROOT_CATEGORIES}


def get_root_category(category_id: str) -> Optional[Dict[str, str]]:
    return _CATALOG.get(category_id)


def is_root_category(category_id: Optional[str]) -> bool:
    return category_id in _CATALOG


# Merchant keywords per category. Payment rails (UPI, IMPS, NEFT) and
# generic words (PAYMENT, TRANSFER, CREDIT) are deliberately absent;
# the special-pattern battery covers those narrations.
DEFAULT_CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    RootCategory.FOOD.value: [
        "SWIGGY", "ZOMATO", "BLINKIT", "ZEPTO", "DUNZO", "INSTAMART", "BIGBASKET",
        "GROFERS", "MCDONALDS", "KFC", "DOMINOS", "PIZZAHUT", "STARBUCKS",
        "BURGERKING", "SUBWAY", "HALDIRAM", "BARBEQUE", "CAFE", "RESTAURANT",
        "FOODCOURT", "BISTRO",
    ],
    RootCategory.TRANSPORT.value: [
        "UBER", "OLA", "RAPIDO", "BLABLACAR", "INDIANOIL", "BPCL", "HPCL",
        "SHELLPETROL", "METRO", "PETROL", "DIESEL", "FUEL", "PARKING", "TOLL",
        "FASTAG",
    ],
    RootCategory.TRAVEL.value: [
        "MAKEMYTRIP", "GOIBIBO", "YATRA", "CLEARTRIP", "IRCTC", "TRAINMAN",
        "REDBUS", "AIRBNB", "OYO", "BOOKING", "EXPEDIA", "AGODA", "TRIVAGO",
        "AIRASIA", "INDIGO", "SPICEJET", "VISTARA", "AIRINDIA", "EMIRATES",
        "HOTEL", "RESORT", "CONFIRMTKT", "IXIGO", "ABHIBUS", "RAILYATRI",
    ],
    RootCategory.UTILITIES.value: [
        "TORRENTPOWER", "ADANI", "ADANIGAS", "ADANIELECT", "MAHANAGAR", "AIRTEL",
        "JIO", "VODAFONE", "IDEA", "BSNL", "TATASKY", "DISHTV", "HATHWAY", "ACT",
        "TIKONA", "SPECTRA", "EXCITEL",
    ],
    RootCategory.DIGITAL.value: [
        "APPLE", "APPLESERVICES", "APPLEMEDIA", "GOOGLEPLAY", "PLAYSTORE",
        "MICROSOFT", "ADOBE", "CANVA", "NOTION", "SLACK", "ZOOM", "DROPBOX",
        "ICLOUD", "GITHUB", "LINKEDIN", "MEDIUM", "SUBSTACK", "CHATGPT", "OPENAI",
        "CLAUDE", "FIGMA", "SKETCH", "INTELLIJ", "JETBRAINS", "DIGITALOCEAN",
        "AWS", "GOOGLECLOUD", "HEROKU", "VERCEL", "NETLIFY", "DOMAIN", "GODADDY",
        "NAMECHEAP", "WORDPRESS", "SQUARESPACE", "WIX", "SHOPIFY",
    ],
    RootCategory.SUBSCRIPTIONS.value: [
        "NETFLIX", "AMAZONPRIME", "PRIMEVIDEO", "SPOTIFY", "HOTSTAR", "DISNEY",
        "YOUTUBE", "GOOGLEONE", "SONYLIV", "VOOT", "ZEE5", "ALTBALAJI",
        "APPLEMUSIC", "GAANA", "JIOSAAVN", "AUDIBLE", "KINDLE",
    ],
    RootCategory.SHOPPING.value: [
        "AMAZON", "FLIPKART", "MYNTRA", "AJIO", "NYKAA", "MEESHO", "SNAPDEAL",
        "LIMEROAD", "KOOVS", "JABONG", "TATACLIQ", "SHOPCLUES", "PEPPERFRY",
        "URBANLADDER", "IKEA", "DECATHLON", "CROMA", "RELIANCE", "DMART",
        "VISHAL", "PANTALOONS", "LIFESTYLE", "WESTSIDE", "ZARA", "HM", "MAX",
        "TRENDS",
    ],
    RootCategory.HEALTH.value: [
        "APOLLO", "FORTIS", "MAXHOSPITAL", "MANIPAL", "AIIMS", "PHARMACY",
        "MEDPLUS", "NETMEDS", "PHARMEASY", "1MG", "HOSPITAL", "CLINIC", "DOCTOR",
        "DIAGNOSTIC", "PRACTO", "LENSKART", "CULTFIT", "GOLDSGYM",
        "ANYTIMEFITNESS",
    ],
    RootCategory.INVESTMENTS.value: [
        "ETMONEY", "GROWW", "ZERODHA", "UPSTOX", "ANGELONE", "ANGELBROKING",
        "KUVERA", "PAYTMMONEY", "COIN", "SMALLCASE", "SCRIPBOX", "PIGGY",
        "KFINTECH", "CAMS", "BSE", "NSE", "ICICIDIRECT", "HDFCSEC", "KOTAKSEC",
        "SHAREKHAN", "5PAISA", "INDMONEY", "FYERS", "MOTILAL", "EDELWEISS",
        "VESTED",
    ],
    RootCategory.EDUCATION.value: [
        "BYJU", "UNACADEMY", "VEDANTU", "TOPPR", "COURSERA", "UDEMY", "UDACITY",
        "EDUREKA", "SIMPLILEARN", "UPGRAD", "WHITEHATJR", "CUEMATH",
        "EXTRAMARKS",
    ],
    RootCategory.ENTERTAINMENT.value: [
        "BOOKMYSHOW", "PAYTMINSIDER", "PVRINOX", "INOX", "CARNIVAL", "CINEPOLIS",
        "PLAYSTATION", "XBOX", "STEAM", "EPICGAMES", "DREAM11", "MPL",
    ],
    RootCategory.HOUSING.value: [
        "NOBROKER", "MAGICBRICKS", "99ACRES", "HOUSING", "NESTAWAY", "OAKTREE",
        "BRIGADE", "PRESTIGE", "SOBHA", "PURAVANKARA", "PAYING GUEST", "SOCIETY",
        "MAINTENANCE",
    ],
    # Card issuers and BNPL only; bank names are left to the EMI/loan patterns
    RootCategory.LOANS.value: [
        "BAJAJFINSERV", "SBICARD", "AMEX", "ONECARD", "SLICE", "LAZYPAY", "SIMPL",
        "ZESTMONEY", "CREDITCARD",
    ],
}

# Flat keyword -> category lookup, in scan order
DEFAULT_KEYWORD_MAP: Dict[str, str] = {
    keyword: category
    for category, keywords in DEFAULT_CATEGORY_KEYWORDS.items()
    for keyword in keywords
}

FUEL_KEYWORDS = (
    "PETROL",
    "DIESEL",
    "FUEL",
    "INDIANOIL",
    "INDIAN OIL",
    "BPCL",
    "HPCL",
    "BHARAT PETROLEUM",
    "HINDUSTAN PETROLEUM",
    "SHELL",
    "ESSAR",
    "NAYARA",
    "IOCL",
    "FILLING STATION",
)
