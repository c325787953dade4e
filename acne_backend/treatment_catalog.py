# ==================== FALLBACK TREATMENT PLANS ====================
# Static plans served when the generated plan is unavailable or unparseable.
# Entries are matched in order by case-insensitive substring of the category;
# GENERAL_PLAN is used when nothing matches.

FALLBACK_PLANS = [
    {
        "name": "Papules",
        "match": ["papule", "papular"],
        "daily": {
            "day1": "Gentle cleansing with salicylic acid face wash. Benzoyl peroxide spot treatment. Oil-free moisturizer.",
            "day2": "Niacinamide serum in morning. Sunscreen. Adapalene gel at night if prescribed.",
            "day3": "Tea tree oil (diluted) in morning. Clay mask in evening.",
            "day4": "Moisturizer with ceramides in morning. BHA exfoliant in evening.",
            "day5": "Azelaic acid in morning. Retinol at night if tolerated.",
            "day6": "Soothing mask with aloe vera or centella asiatica in evening.",
        },
        "weekly": {
            "week1": "Focus on gentle cleansing with salicylic acid face wash twice daily. Apply benzoyl peroxide spot treatment on affected areas. Use a light, oil-free moisturizer. Avoid picking or squeezing papules.",
            "week2": "Continue with the cleansing routine. Add niacinamide serum in the morning to reduce inflammation. Use a clay mask twice this week. Start using adapalene gel at night if prescribed by a dermatologist.",
            "week3": "Maintain the cleansing and treatment routine. Add gentle exfoliation with BHA once or twice this week. Continue with niacinamide in the morning and adapalene at night. Use hydrating sheet masks to prevent dryness.",
            "week4": "Continue with the established routine. If improvement is seen, maintain the regimen. If not, consider adding azelaic acid in the morning. Use soothing ingredients like centella asiatica or aloe vera to calm any irritation.",
        },
    },
    {
        "name": "Blackhead",
        "match": ["blackhead"],
        "daily": {
            "day1": "Salicylic acid cleanser. BHA toner. Clay mask at night.",
            "day2": "Niacinamide serum in morning. Retinol in evening.",
            "day3": "Vitamin C serum in morning. BHA in evening.",
            "day4": "Gentle cleanser. Use pore strip or extraction tool at night.",
            "day5": "Mattifying primer. Glycolic acid exfoliant in evening.",
            "day6": "Non-comedogenic moisturizer. Benzoyl peroxide at night.",
        },
        "weekly": {
            "week1": "Use a salicylic acid cleanser twice daily. Apply a BHA toner to help dissolve oil in pores. Use a clay mask twice this week to draw out impurities. Avoid heavy, comedogenic products.",
            "week2": "Continue with the salicylic acid cleanser. Add niacinamide serum to regulate oil production. Use a gentle retinol product 2-3 times this week to promote cell turnover. Apply a charcoal mask once.",
            "week3": "Maintain cleansing routine. Add a vitamin C serum in the morning for antioxidant protection. Continue with retinol at night. Use a pore strip or gentle extraction tool after steaming face once this week.",
            "week4": "Continue with the established routine. Add a glycolic acid treatment 1-2 times this week to exfoliate skin surface. Use a mattifying primer if needed for oil control. Assess progress and adjust as needed.",
        },
    },
    {
        "name": "Whitehead",
        "match": ["whitehead"],
        "daily": {
            "day1": "BHA serum in morning. Retinoid cream at night.",
            "day2": "Salicylic acid cleanser. Niacinamide. Benzoyl peroxide at night.",
            "day3": "Azelaic acid in morning. AHA exfoliant in evening.",
            "day4": "Moisturizer in morning. Sulfur-based treatment at night.",
            "day5": "Tea tree oil in morning. Clay mask in evening.",
            "day6": "Non-comedogenic moisturizer in morning. Adapalene gel at night.",
        },
        "weekly": {
            "week1": "Cleanse twice daily with a salicylic acid cleanser. Apply a BHA serum in the morning and a light, non-comedogenic moisturizer. Avoid heavy creams and pore-clogging makeup.",
            "week2": "Continue the cleansing routine. Add niacinamide in the morning to balance oil. Introduce a retinoid cream 2-3 nights this week. Use a clay mask once.",
            "week3": "Maintain the routine. Add an AHA exfoliant once or twice this week to smooth the surface. Use a sulfur-based spot treatment on stubborn bumps. Keep skin hydrated.",
            "week4": "Continue with the established routine. Increase retinoid use if well tolerated. Add azelaic acid in the morning if whiteheads persist. Review progress and simplify where skin has cleared.",
        },
    },
    {
        "name": "Cystic",
        "match": ["cystic"],
        "daily": {
            "day1": "Ice compress in morning. Benzoyl peroxide at night.",
            "day2": "Niacinamide in morning. Warm compress + salicylic acid at night.",
            "day3": "Green tea extract in morning. Azelaic acid in evening.",
            "day4": "Aloe vera in morning. Sulfur clay mask at night.",
            "day5": "Zinc-based serum in morning. Adapalene if prescribed.",
            "day6": "Centella asiatica in morning. Hydrocolloid patch at night.",
        },
        "weekly": {
            "week1": "Use a gentle, non-foaming cleanser twice daily. Apply ice compresses to reduce inflammation. Start with a low concentration benzoyl peroxide treatment at night. Use a light, non-comedogenic moisturizer.",
            "week2": "Continue gentle cleansing. Add niacinamide serum in the morning. Apply warm compresses before treatment. Use salicylic acid spot treatment. Consider hydrocolloid patches for individual cysts.",
            "week3": "Maintain cleansing routine. Add azelaic acid to reduce inflammation and bacteria. Continue with spot treatments. Use a sulfur-based mask once this week. Ensure adequate hydration with a ceramide moisturizer.",
            "week4": "Continue with established routine. If prescribed, use adapalene gel at night. Add a zinc-based serum to reduce inflammation. Use centella asiatica products to promote healing. Assess if dermatologist consultation is needed.",
        },
    },
]

GENERAL_PLAN = {
    "name": "General",
    "match": [],
    "daily": {
        "day1": "Hydrating toner. Oil-free moisturizer. Salicylic acid spot treatment at night.",
        "day2": "Niacinamide serum. Benzoyl peroxide in evening.",
        "day3": "Vitamin C in morning. Clay mask at night.",
        "day4": "Hydrating serum. BHA exfoliant in evening.",
        "day5": "Azelaic acid in morning. Retinol at night.",
        "day6": "Centella asiatica in morning. Overnight hydrating mask.",
    },
    "weekly": {
        "week1": "Start with a gentle cleanser twice daily. Use a hydrating toner. Apply a light, oil-free moisturizer. Use salicylic acid spot treatment for any breakouts. Wear sunscreen during the day.",
        "week2": "Continue cleansing routine. Add niacinamide serum in the morning. Use benzoyl peroxide spot treatment at night. Apply a clay mask twice this week. Maintain sun protection.",
        "week3": "Maintain cleansing routine. Add vitamin C serum in the morning. Begin gentle exfoliation with BHA 2-3 times this week. Use a hydrating mask once. Continue spot treatments as needed.",
        "week4": "Continue established routine. Add azelaic acid in the morning if needed. Consider introducing retinol at night (start with 1-2 times per week). Use soothing ingredients like aloe vera or centella asiatica as needed.",
    },
}
