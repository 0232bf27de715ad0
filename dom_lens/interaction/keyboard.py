"""Character to key-event mapping for synthetic typing (US layout)."""

from dataclasses import dataclass

SHIFT_MODIFIER = 8


@dataclass(frozen=True, slots=True)
class CharInfo:
	key: str
	"""Key label sent with keyDown/keyUp (the unshifted base key)"""
	code: str
	windows_virtual_key_code: int
	modifiers: int = 0


# shifted symbol -> (base key, virtual key code, code)
SHIFTED_SYMBOLS: dict[str, tuple[str, int, str]] = {
	'!': ('1', 49, 'Digit1'),
	'@': ('2', 50, 'Digit2'),
	'#': ('3', 51, 'Digit3'),
	'$': ('4', 52, 'Digit4'),
	'%': ('5', 53, 'Digit5'),
	'^': ('6', 54, 'Digit6'),
	'&': ('7', 55, 'Digit7'),
	'*': ('8', 56, 'Digit8'),
	'(': ('9', 57, 'Digit9'),
	')': ('0', 48, 'Digit0'),
	'_': ('-', 189, 'Minus'),
	'+': ('=', 187, 'Equal'),
	'{': ('[', 219, 'BracketLeft'),
	'}': (']', 221, 'BracketRight'),
	'|': ('\\', 220, 'Backslash'),
	':': (';', 186, 'Semicolon'),
	'"': ("'", 222, 'Quote'),
	'<': (',', 188, 'Comma'),
	'>': ('.', 190, 'Period'),
	'?': ('/', 191, 'Slash'),
	'~': ('`', 192, 'Backquote'),
}

UNSHIFTED_SYMBOLS: dict[str, tuple[int, str]] = {
	' ': (32, 'Space'),
	'-': (189, 'Minus'),
	'=': (187, 'Equal'),
	'[': (219, 'BracketLeft'),
	']': (221, 'BracketRight'),
	'\\': (220, 'Backslash'),
	';': (186, 'Semicolon'),
	"'": (222, 'Quote'),
	',': (188, 'Comma'),
	'.': (190, 'Period'),
	'/': (191, 'Slash'),
	'`': (192, 'Backquote'),
}

ENTER = CharInfo(key='Enter', code='Enter', windows_virtual_key_code=13)


def get_char_info(char: str) -> CharInfo | None:
	"""Key event data for one character, or None when it cannot be typed on a US keyboard."""
	if char in SHIFTED_SYMBOLS:
		base_key, vk_code, code = SHIFTED_SYMBOLS[char]
		return CharInfo(key=base_key, code=code, windows_virtual_key_code=vk_code, modifiers=SHIFT_MODIFIER)

	if 'A' <= char <= 'Z':
		return CharInfo(key=char.lower(), code=f'Key{char}', windows_virtual_key_code=ord(char), modifiers=SHIFT_MODIFIER)

	if 'a' <= char <= 'z':
		return CharInfo(key=char, code=f'Key{char.upper()}', windows_virtual_key_code=ord(char.upper()))

	if '0' <= char <= '9':
		return CharInfo(key=char, code=f'Digit{char}', windows_virtual_key_code=ord(char))

	if char in UNSHIFTED_SYMBOLS:
		vk_code, code = UNSHIFTED_SYMBOLS[char]
		return CharInfo(key=char, code=code, windows_virtual_key_code=vk_code)

	if char == '\n':
		return ENTER

	return None


def can_type(text: str) -> bool:
	return all(get_char_info(char) is not None for char in text)
