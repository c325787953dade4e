# ==================== ACNE CATEGORIES ====================

UNKNOWN_LABEL = "Unknown"
GENERIC_LABEL = "Acne"
NO_ACNE_SENTINEL = "no acne"

# Closed vocabulary offered to the generative classifier
VALID_TYPES = [
    "Blackhead", "Conglobata", "Crystalline", "Cystic", "Flat_wart", "Folliculitis",
    "Keloid", "Milium", "Papular", "Purulent", "Scars", "Sebo-crystan-conglo",
    "Syringoma", "Whitehead",
]

SEVERITY_LABELS = {
    0: "Clear / Normal",
    1: "Mild",
    2: "Moderate",
    3: "Severe",
}

ACNE_DESCRIPTIONS = {
    "Acne": "Acne vulgaris is a common skin condition characterized by the formation of comedones (blackheads and whiteheads), papules, pustules, nodules, and/or cysts due to obstruction and inflammation of hair follicles and their accompanying sebaceous glands. It typically affects the face and upper trunk and is most prevalent among adolescents.",
    "Blackhead": "Blackheads, or open comedones, are small, dark lesions on the skin caused by clogged hair follicles. They occur when a pore becomes clogged with sebum and dead skin cells, and the exposure to air causes the clog to oxidize and turn black.",
    "Conglobata": "Acne conglobata is a rare and severe form of acne characterized by interconnected nodules, cysts, and abscesses that can lead to significant scarring. It commonly affects the face, chest, back, and buttocks.",
    "Crystalline": "Crystalline acne refers to the presence of polarizable crystalline material within acne comedones. These crystals are more prominent in closed comedones and may contribute to the persistence of acne lesions.",
    "Cystic": "Cystic acne is a severe form of acne where the pores in the skin become blocked, leading to infection and inflammation. This results in large, painful cysts beneath the skin's surface, which can cause scarring.",
    "Flat Wart": "Flat warts, or verruca plana, are small, smooth, flat-topped bumps caused by the human papillomavirus (HPV). They often appear in clusters on the face, hands, or legs and are more common in children and young adults.",
    "Folliculitis": "Folliculitis is the inflammation of hair follicles, often resulting in red, pimple-like bumps. It can be caused by bacterial or fungal infections and may resemble acne.",
    "Keloid": "Keloids are raised overgrowths of scar tissue that occur at the site of skin injury. They can develop after acne lesions heal.",
    "Milium": "Milia are small, white cysts that form when keratin becomes trapped beneath the skin's surface. They are commonly found around the eyes and cheeks and are not a form of acne.",
    "Papular": "Papular acne consists of small, raised, red bumps that are inflamed but do not contain pus. These lesions can be tender to the touch and are a sign of moderate acne.",
    "Purulent": "Purulent acne lesions, also known as pustules, are inflamed bumps filled with pus. They are a result of bacterial infection within clogged pores and are a common feature of moderate to severe acne.",
    "Scars": "Acne scars are permanent textural changes and indentations that occur on the skin due to severe acne. They can be atrophic (depressed) or hypertrophic (raised) and may require dermatological treatments to improve appearance.",
    "Sebo-crystan-conglo": "A dataset category describing complex lesions that combine sebaceous activity, crystalline structures and conglobate features. It may require specialized treatment.",
    "Syringoma": "Syringomas are benign tumors of the sweat glands, presenting as small, flesh-colored or yellowish bumps, typically around the eyes. They are not related to acne but can be mistaken for milia.",
    "Whitehead": "Whiteheads, or closed comedones, occur when a pore becomes clogged with sebum and dead skin cells, but the top of the pore closes up. This results in a small, white bump on the skin's surface.",
    "Normal": "Your skin appears to be in a healthy condition without significant acne concerns. Continue with a gentle skincare routine to maintain skin health.",
}

DEFAULT_DESCRIPTION = "This type of acne forms when hair follicles become clogged with oil and dead skin cells. Treatment depends on the specific type and severity."


def format_prediction(prediction) -> str:
    """Title-case a raw label: 'flat_wart' -> 'Flat Wart'. Empty -> 'Acne'."""
    if not prediction:
        return GENERIC_LABEL
    words = [w for w in str(prediction).strip().replace('_', ' ').split() if w]
    if not words:
        return GENERIC_LABEL
    return " ".join(w[0].upper() + w[1:].lower() for w in words)


def get_severity_label(grade) -> str:
    return SEVERITY_LABELS.get(grade, UNKNOWN_LABEL)


def get_acne_description(label: str) -> str:
    primary = (label or "").split(", ")[0]
    for name, description in ACNE_DESCRIPTIONS.items():
        if name.lower() == primary.lower():
            return description
    return DEFAULT_DESCRIPTION
