"""
Vision Prompts

Prompt templates sent to the generative vision model. Every template asks
for exactly one JSON object so the response parser can extract it.
"""

from typing import List, Optional, Sequence


IMAGE_LABELS = ("Front", "Back", "Side")


QUICK_SINGLE = """You are a pharmaceutical expert. Look at this medicine image and provide ONLY the medicine name identification.

Respond with one JSON object with this EXACT structure:
{
  "identified": true/false,
  "confidence": 1-10,
  "medicineName": {
    "brandName": "primary brand/trade name if visible",
    "genericName": "generic/chemical name if identifiable",
    "primaryName": "the most prominent name visible on the medicine"
  },
  "medicineType": "pill/package/bottle/liquid/cream/injection/other",
  "quickIdentification": {
    "shape": "basic shape description",
    "color": "basic color description",
    "visibleText": ["key text visible on the medicine"],
    "markings": "main imprints or markings"
  },
  "verificationNeeded": true/false,
  "reasoning": "brief explanation of the identification"
}

Instructions:
1. Focus ONLY on identifying the medicine name
2. Give a confidence based on how clearly the name can be read
3. Set verificationNeeded to true if the identification is uncertain
4. Use null for anything that is not visible"""


QUICK_MULTI = """You are a pharmaceutical expert analyzing {count} images of the same medicine from different angles.

Images provided:
{image_list}

Analyze ALL images together and provide one consolidated medicine name identification.

Respond with one JSON object with this EXACT structure:
{{
  "identified": true/false,
  "confidence": 1-10,
  "medicineName": {{
    "brandName": "brand/trade name found across images",
    "genericName": "generic/chemical name found across images",
    "primaryName": "the most prominent name across all images"
  }},
  "medicineType": "pill/package/bottle/liquid/cream/injection/other",
  "quickIdentification": {{
    "shape": "consolidated shape description",
    "color": "consolidated color description",
    "visibleText": ["key text visible across all images"],
    "markings": "all imprints or markings found"
  }},
  "imageContributions": {{
{contribution_shape}
  }},
  "verificationNeeded": true/false,
  "reasoning": "how the images were combined",
  "dataQuality": {{
    "completeness": 1-10,
    "consistency": 1-10,
    "conflictingInfo": ["every disagreement found between images"]
  }}
}}

Instructions:
1. Cross-reference information from ALL images
2. Report the lot number and expiration date exactly as printed on EACH image
3. List any information that differs between images under conflictingInfo
4. Use null for anything that is not visible"""


COMPREHENSIVE = """You are a pharmaceutical expert analyzing {count_phrase} of the verified medicine: "{verified_name}"
{image_section}
Using the verified medicine name as the authoritative identification, extract the most complete information possible.

Respond with one JSON object with this EXACT structure:
{{
  "identified": true,
  "confidence": 1-10,
  "verifiedName": "{verified_name}",
  "medicineType": "pill/package/bottle/liquid/cream/injection/other",
  "medicine": {{
    "brandName": "brand/trade name",
    "genericName": "generic/chemical name",
    "activeIngredients": ["active ingredients with amounts"],
    "inactiveIngredients": ["inactive ingredients"],
    "strength": "strength",
    "dosageForm": "tablet/capsule/liquid/injection/cream/etc",
    "route": "oral/topical/injection/etc",
    "ndc": "National Drug Code if visible",
    "manufacturer": "manufacturer name",
    "distributedBy": "distributor if different",
    "therapeuticClass": "drug class"
  }},
  "comprehensiveInfo": {{
    "indication": "what condition it treats",
    "mechanism": "how the medicine works",
    "pharmacokinetics": "absorption, distribution, metabolism, excretion",
    "dosageInstructions": "dosing information",
    "contraindications": ["when not to use"],
    "warnings": ["warnings"],
    "sideEffects": ["side effects"],
    "drugInteractions": ["drug interactions"],
    "pregnancyCategory": "pregnancy category",
    "storageInstructions": "how to store"
  }},
  "manufacturingInfo": {{
    "lotNumber": "lot/batch number",
    "expirationDate": "expiration date",
    "manufacturingDate": "manufacturing date if visible",
    "ndc": "National Drug Code if visible",
    "upc": "UPC barcode if visible"
  }},
  "physicalCharacteristics": {{
    "shape": "shape",
    "color": "color",
    "size": "size if visible",
    "markings": "imprints, scores, embossing",
    "coating": "coating type",
    "packaging": "bottle/blister/box/tube/etc"
  }},
  "extractedText": {{
    "allText": ["every piece of visible text"],
    "drugNames": ["drug names found"],
    "warnings": ["warning text found"],
    "directions": ["usage directions found"],
    "codes": ["codes and numbers found"]
  }},{multi_fields}
  "verificationNeeded": true/false,
  "reasoning": "explanation of the analysis"
}}

Instructions:
1. Use the verified medicine name as the authoritative identification
2. Extract ALL visible text and codes
3. Use null for anything that is neither visible nor well established
4. Do not invent lot numbers, dates or codes"""


MULTI_COMPREHENSIVE_FIELDS = """
  "imageContributions": {{
{contribution_shape}
  }},
  "dataQuality": {{
    "completeness": 1-10,
    "consistency": 1-10,
    "conflictingInfo": ["every disagreement found between images"]
  }},"""


def image_label(index: int) -> str:
    """Label of the image at a zero-based position (Front, Back, Side, Image 4...)."""
    if index < len(IMAGE_LABELS):
        return IMAGE_LABELS[index]
    return f"Image {index + 1}"


def _image_list(labels: Sequence[str]) -> str:
    return "\n".join(
        f"- Image {i + 1} ({label}): different angle/side of the medicine"
        for i, label in enumerate(labels)
    )


def _contribution_shape(labels: Sequence[str]) -> str:
    entries = []
    for i, label in enumerate(labels):
        entries.append(
            f'    "image{i + 1}": {{"label": "{label}", "names": ["names read on this image"], '
            f'"lotNumber": "lot number on this image or null", '
            f'"expirationDate": "expiration date on this image or null", '
            f'"contributedInfo": ["information taken from this image"]}}'
        )
    return ",\n".join(entries)


def build_quick_prompt(labels: List[str]) -> str:
    """Prompt for quick (name-only) identification."""
    if len(labels) <= 1:
        return QUICK_SINGLE
    return QUICK_MULTI.format(
        count=len(labels),
        image_list=_image_list(labels),
        contribution_shape=_contribution_shape(labels),
    )


def build_comprehensive_prompt(labels: List[str], verified_name: Optional[str]) -> str:
    """Prompt for full extraction of a user-verified medicine."""
    name = (verified_name or "").replace('"', "'").strip()
    if len(labels) <= 1:
        return COMPREHENSIVE.format(
            count_phrase="an image",
            verified_name=name,
            image_section="",
            multi_fields="",
        )
    multi_fields = MULTI_COMPREHENSIVE_FIELDS.format(contribution_shape=_contribution_shape(labels))
    return COMPREHENSIVE.format(
        count_phrase=f"{len(labels)} images",
        verified_name=name,
        image_section=f"\nImages provided:\n{_image_list(labels)}\n",
        multi_fields=multi_fields,
    )
