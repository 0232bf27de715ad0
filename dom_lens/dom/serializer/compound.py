"""Virtual sub-components for composite form and media controls."""

import logging
from typing import Any

from dom_lens.dom.serializer.clickable_elements import can_virtualize
from dom_lens.dom.utils import children_of
from dom_lens.dom.views import CompoundComponent, DOMNodeTable, EnhancedDOMTreeNode, NodeType

logger = logging.getLogger(__name__)

DATE_TIME_INPUT_TYPES = {'date', 'time', 'datetime-local', 'month', 'week'}
EMPTY_FILE_VALUES = {'', 'no file chosen', 'no file selected'}

MAX_PREVIEW_OPTIONS = 4
MAX_OPTION_TEXT = 30


def _safe_parse_number(value: str | None, default: float) -> float:
	if value is None or str(value).strip() == '':
		return default
	try:
		return float(value)
	except (TypeError, ValueError):
		return default


def _safe_parse_optional_number(value: str | None) -> float | None:
	if value is None or str(value).strip() == '':
		return None
	try:
		return float(value)
	except (TypeError, ValueError):
		return None


def _direct_text(table: DOMNodeTable, node: EnhancedDOMTreeNode) -> str:
	parts = [
		child.node_value.strip()
		for child in children_of(table, node.index)
		if child.node_type == NodeType.TEXT_NODE and child.node_value and child.node_value.strip()
	]
	return ' '.join(parts)


def collect_select_options(table: DOMNodeTable, select_node: EnhancedDOMTreeNode) -> list[dict[str, str]]:
	"""Every <option> below the select, descending through <optgroup>. Value falls back to the text."""
	options: list[dict[str, str]] = []

	def visit(node: EnhancedDOMTreeNode) -> None:
		if node.tag_name == 'option':
			option_value = (node.attributes.get('value') or '').strip()
			option_text = _direct_text(table, node)
			if not option_value and option_text:
				option_value = option_text
			if option_text or option_value:
				options.append({'text': option_text, 'value': option_value})
			return

		for child in children_of(table, node.index):
			visit(child)

	for child in children_of(table, select_node.index):
		visit(child)
	return options


def infer_format_hint(values: list[str]) -> str | None:
	"""Guess what kind of values a dropdown holds from its first five entries."""
	sample = [value for value in values[:5] if value]
	if len(values) < 2 or not sample:
		return None
	if all(value.isdigit() for value in sample):
		return 'numeric'
	if all(len(value) == 2 and value.isupper() for value in sample):
		return 'country/state codes'
	if all('/' in value or '-' in value for value in sample):
		return 'date/path format'
	if any('@' in value for value in sample):
		return 'email addresses'
	return None


def _options_preview(options: list[dict[str, str]]) -> list[str]:
	preview = []
	for option in options[:MAX_PREVIEW_OPTIONS]:
		display_text = option['text'] or option['value']
		if display_text:
			preview.append(display_text[:MAX_OPTION_TEXT] + ('...' if len(display_text) > MAX_OPTION_TEXT else ''))
	if len(options) > MAX_PREVIEW_OPTIONS:
		preview.append(f'... {len(options) - MAX_PREVIEW_OPTIONS} more options...')
	return preview


def _file_selection(node: EnhancedDOMTreeNode) -> str:
	if not (node.ax_node and node.ax_node.properties):
		return 'None'

	for prop in node.ax_node.properties:
		if prop.name == 'valuetext' and prop.value:
			value_str = str(prop.value).strip()
			if value_str.lower() not in EMPTY_FILE_VALUES:
				return value_str
			break
		if prop.name == 'value' and prop.value:
			value_str = str(prop.value).strip()
			if value_str:
				# browsers report C:\fakepath\name.ext, keep just the file name
				return value_str.replace('\\', '/').split('/')[-1]
	return 'None'


def _input_components(node: EnhancedDOMTreeNode) -> list[CompoundComponent]:
	input_type = (node.attributes.get('type') or '').lower()

	# the format hint for these lives in the attribute string
	if input_type in DATE_TIME_INPUT_TYPES:
		return []

	if input_type == 'range':
		valuemin = _safe_parse_number(node.attributes.get('min'), 0.0)
		valuemax = _safe_parse_number(node.attributes.get('max'), 100.0)
		valuenow = _safe_parse_number(node.attributes.get('value'), (valuemin + valuemax) / 2)
		return [CompoundComponent(role='slider', name='Value', valuemin=valuemin, valuemax=valuemax, valuenow=valuenow)]

	if input_type == 'number':
		return [
			CompoundComponent(role='button', name='Increment'),
			CompoundComponent(role='button', name='Decrement'),
			CompoundComponent(
				role='textbox',
				name='Value',
				valuemin=_safe_parse_optional_number(node.attributes.get('min')),
				valuemax=_safe_parse_optional_number(node.attributes.get('max')),
			),
		]

	if input_type == 'color':
		return [
			CompoundComponent(role='textbox', name='Hex Value', valuenow=node.attributes.get('value') or '#000000'),
			CompoundComponent(role='button', name='Color Picker'),
		]

	if input_type == 'file':
		multiple = 'multiple' in node.attributes
		return [
			CompoundComponent(role='button', name='Browse Files'),
			CompoundComponent(
				role='textbox',
				name=f'{"Files" if multiple else "File"} Selected',
				valuenow=_file_selection(node),
				readonly=True,
			),
		]

	return []


def _select_components(table: DOMNodeTable, node: EnhancedDOMTreeNode) -> list[CompoundComponent]:
	components = [CompoundComponent(role='button', name='Dropdown Toggle')]

	options = collect_select_options(table, node)
	if not options:
		components.append(CompoundComponent(role='listbox', name='Options'))
		return components

	components.append(
		CompoundComponent(
			role='listbox',
			name='Options',
			options_count=len(options),
			first_options=_options_preview(options),
			format_hint=infer_format_hint([option['value'] for option in options]),
		)
	)
	return components


def _media_components(node: EnhancedDOMTreeNode) -> list[CompoundComponent]:
	components = [
		CompoundComponent(role='button', name='Play/Pause'),
		CompoundComponent(role='slider', name='Progress', valuemin=0, valuemax=100),
		CompoundComponent(role='button', name='Mute'),
		CompoundComponent(role='slider', name='Volume', valuemin=0, valuemax=100),
	]
	if node.tag_name == 'video':
		components.append(CompoundComponent(role='button', name='Fullscreen'))
	return components


def _aria_range(node: EnhancedDOMTreeNode) -> tuple[float, float, float]:
	valuemin = _safe_parse_number(node.attributes.get('aria-valuemin'), 0.0)
	valuemax = _safe_parse_number(node.attributes.get('aria-valuemax'), 100.0)
	valuenow = _safe_parse_number(node.attributes.get('aria-valuenow'), (valuemin + valuemax) / 2)
	return valuemin, valuemax, valuenow


def _role_components(node: EnhancedDOMTreeNode) -> list[CompoundComponent]:
	role = (node.attributes.get('role') or '').lower()

	if role == 'combobox':
		return [
			CompoundComponent(role='textbox', name='Input'),
			CompoundComponent(role='button', name='Dropdown Toggle'),
			CompoundComponent(role='listbox', name='Options'),
		]

	if role == 'slider':
		valuemin, valuemax, valuenow = _aria_range(node)
		return [CompoundComponent(role='slider', name='Value', valuemin=valuemin, valuemax=valuemax, valuenow=valuenow)]

	if role == 'spinbutton':
		valuemin, valuemax, valuenow = _aria_range(node)
		return [
			CompoundComponent(role='button', name='Increment'),
			CompoundComponent(role='button', name='Decrement'),
			CompoundComponent(role='textbox', name='Value', valuemin=valuemin, valuemax=valuemax, valuenow=valuenow),
		]

	if role == 'listbox':
		set_size = int(_safe_parse_number(node.attributes.get('aria-setsize'), 0))
		return [CompoundComponent(role='listbox', name='Options', options_count=set_size if set_size > 0 else None)]

	return []


def build_compound_components(table: DOMNodeTable, node: EnhancedDOMTreeNode) -> list[CompoundComponent]:
	"""Ordered virtual components for a composite control, empty for everything else."""
	if not can_virtualize(node):
		return []

	tag = node.tag_name
	if tag == 'input':
		components = _input_components(node)
		# <input role=combobox type=text> is described by its role instead
		if components or (node.attributes.get('type') or '').lower() in DATE_TIME_INPUT_TYPES:
			return components
	if tag == 'select':
		return _select_components(table, node)
	if tag == 'details':
		is_open = 'open' in node.attributes
		return [
			CompoundComponent(role='button', name='Toggle Disclosure', valuenow='open' if is_open else 'closed'),
			CompoundComponent(role='region', name='Content Area'),
		]
	if tag in ('audio', 'video'):
		return _media_components(node)
	return _role_components(node)


def _format_value(value: Any) -> str:
	if isinstance(value, float) and value.is_integer():
		return str(int(value))
	return str(value)


def format_compound_components(components: list[CompoundComponent]) -> str:
	"""compound_components=(name=..,role=..,...),(...) or '' when there is nothing to show."""
	groups = []
	for component in components:
		parts = []
		if component.name:
			parts.append(f'name={component.name}')
		if component.role:
			parts.append(f'role={component.role}')
		if component.valuemin is not None:
			parts.append(f'min={_format_value(component.valuemin)}')
		if component.valuemax is not None:
			parts.append(f'max={_format_value(component.valuemax)}')
		if component.valuenow is not None:
			parts.append(f'current={_format_value(component.valuenow)}')
		if component.options_count is not None:
			parts.append(f'count={component.options_count}')
		if component.first_options:
			parts.append(f'options={"|".join(component.first_options)}')
		if component.format_hint:
			parts.append(f'format={component.format_hint}')
		if component.readonly:
			parts.append('readonly=true')
		if parts:
			groups.append(f'({",".join(parts)})')

	if not groups:
		return ''
	return f'compound_components={",".join(groups)}'
