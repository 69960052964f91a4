from __future__ import annotations

# Section labels and bullet marker are shared by the prompt and the parser.
ESSENTIALS_HEADER = "**ESSENTIALS:**"
FOOTWEAR_HEADER = "**FOOTWEAR:**"
ACCESSORIES_HEADER = "**ACCESSORIES:**"
TIP_HEADER = "**TIP:**"
BULLET = "•"

SECTION_HEADERS: dict[str, str] = {
    ESSENTIALS_HEADER: "essentials",
    FOOTWEAR_HEADER: "footwear",
    ACCESSORIES_HEADER: "accessories",
    TIP_HEADER: "tip",
}

CLOTHING_PROMPT_TEMPLATE = f"""You are a fashion advisor providing practical clothing recommendations. Based on these weather conditions:
- Temperature: {{temperature}}°{{unit}}
- Weather: {{description}}
- Humidity: {{humidity}}%{{wind_line}}{{location_line}}

Provide specific clothing recommendations in this exact format:

{ESSENTIALS_HEADER}
{BULLET} [List essential clothing items]

{FOOTWEAR_HEADER}
{BULLET} [Footwear recommendation]

{ACCESSORIES_HEADER}
{BULLET} [List accessories if needed]

{TIP_HEADER}
{BULLET} [One practical tip for the weather]

Be specific about clothing types (e.g., "cotton t-shirt" not just "shirt"). Consider comfort, practicality, and weather protection. Keep recommendations concise but detailed."""

CONNECTION_TEST_PROMPT = "Hello! Please respond with 'Connection successful'"


__all__ = [
    "ACCESSORIES_HEADER",
    "BULLET",
    "CLOTHING_PROMPT_TEMPLATE",
    "CONNECTION_TEST_PROMPT",
    "ESSENTIALS_HEADER",
    "FOOTWEAR_HEADER",
    "SECTION_HEADERS",
    "TIP_HEADER",
]
