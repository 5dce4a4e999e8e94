"""
Reparación de texto mal decodificado.

Algunos laboratorios alemanes exportan HL7 en Windows-1252 / Latin-1 y el texto
llega leído como otro charset. Aquí se recupera lo que se pueda sin lanzar nunca.
"""
import re
from typing import Dict, Union

# Byte -> caracter correcto (rango 0x80-0xFF)
LEGACY_WESTERN_TABLE: Dict[int, str] = {
    0xE4: "ä", 0xC4: "Ä",
    0xF6: "ö", 0xD6: "Ö",
    0xFC: "ü", 0xDC: "Ü",
    0xDF: "ß",
    0xE0: "à", 0xC0: "À",
    0xE1: "á", 0xC1: "Á",
    0xE2: "â", 0xC2: "Â",
    0xE3: "ã", 0xC3: "Ã",
    0xE5: "å", 0xC5: "Å",
    0xE6: "æ", 0xC6: "Æ",
    0xE7: "ç", 0xC7: "Ç",
    0xE8: "è", 0xC8: "È",
    0xE9: "é", 0xC9: "É",
    0xEA: "ê", 0xCA: "Ê",
    0xEB: "ë", 0xCB: "Ë",
    0xEC: "ì", 0xCC: "Ì",
    0xED: "í", 0xCD: "Í",
    0xEE: "î", 0xCE: "Î",
    0xEF: "ï", 0xCF: "Ï",
    0xF0: "ð", 0xD0: "Ð",
    0xF1: "ñ", 0xD1: "Ñ",
    0xF2: "ò", 0xD2: "Ò",
    0xF3: "ó", 0xD3: "Ó",
    0xF4: "ô", 0xD4: "Ô",
    0xF5: "õ", 0xD5: "Õ",
    0xF7: "÷", 0xD7: "×",
    0xF8: "ø", 0xD8: "Ø",
    0xF9: "ù", 0xD9: "Ù",
    0xFA: "ú", 0xDA: "Ú",
    0xFB: "û", 0xDB: "Û",
    0xFD: "ý", 0xDD: "Ý",
    0xFE: "þ", 0xDE: "Þ",
    0xFF: "ÿ", 0x9F: "Ÿ",
}

_CONTROL_PASSTHROUGH = {0x09: "\t", 0x0A: "\n", 0x0D: "\r"}

REPLACEMENT_CHAR = "�"

# Frases alemanas que aparecen corruptas en los informes
KNOWN_MOJIBAKE: Dict[str, str] = {
    "gem�ss": "gemäß",
    "f�r": "für",
    "Veterin�rwesen": "Veterinärwesen",
    "Bundesamt f�r Lebensmittelsicherheit und Veterin�rwesen": (
        "Bundesamt für Lebensmittelsicherheit und Veterinärwesen"
    ),
}


def decode_legacy_western_text(data: Union[bytes, bytearray]) -> str:
    """Decode single-byte Western-European text byte by byte. Never raises."""
    out = []
    for byte in data:
        mapped = LEGACY_WESTERN_TABLE.get(byte)
        if mapped is not None:
            out.append(mapped)
        elif 0x20 <= byte <= 0x7E:
            out.append(chr(byte))
        elif byte in _CONTROL_PASSTHROUGH:
            out.append(_CONTROL_PASSTHROUGH[byte])
        else:
            out.append(chr(byte))
    return "".join(out)


def repair_known_mojibake(text: str) -> str:
    """Replace known corrupted German phrases; no-op without U+FFFD."""
    if not text or REPLACEMENT_CHAR not in text:
        return text
    fixed = text
    for corrupted, correct in KNOWN_MOJIBAKE.items():
        fixed = re.sub(re.escape(corrupted), correct, fixed)
    return fixed
