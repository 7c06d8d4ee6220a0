"""
Main NiceGUI application for FlowCanvas.

Host shell around the workflow editor engine: header with name, saved-workflow
and template pickers, save and back; toolbar with zoom and "Add Status"; the
canvas; a context card for the selected status or transition; the add/edit status dialog.

Saved workflows go to db/workflows/ through WorkflowStore.
"""

import logging
import sys

from nicegui import ui
from dotenv import load_dotenv

load_dotenv()

from flowcanvas.paths import ensure_db_dir
from flowcanvas.config import get_theme, get_theme_name, set_theme_name
from flowcanvas.editor import WorkflowEditor
from flowcanvas.edit.handlers import OverlayPointerListeners, setup_edit_handlers
from flowcanvas.edit.overlay import EditOverlay
from flowcanvas.models import StatusForm
from flowcanvas.templates import NEW_STATUS_COLOR, PRESET_COLORS, list_templates, load_template
from flowcanvas.workflow_store import WorkflowStore

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

ensure_db_dir()


def open_status_dialog(editor: WorkflowEditor, on_done, node_id: str = None):
    """Add-status dialog; edits node_id when given."""
    form = editor.actions.status_form(node_id) if node_id else StatusForm(name='', color=NEW_STATUS_COLOR)
    if form is None:
        return

    with ui.dialog() as dialog, ui.card().classes('w-96'):
        ui.label('Edit Status' if node_id else 'Add Status').classes('text-lg font-semibold')
        name_input = ui.input('Name', value=form.name).classes('w-full')
        with ui.row().classes('items-center gap-2'):
            color_input = ui.color_input('Color', value=form.color).classes('w-40')
            for preset in PRESET_COLORS:
                ui.button(on_click=lambda p=preset: color_input.set_value(p)) \
                    .props('round dense unelevated').style(f'background: {preset} !important; width: 24px; height: 24px')
        wip_input = ui.number('WIP limit', value=form.wip_limit, min=0, step=1, format='%d').classes('w-40')
        done_switch = ui.switch('Marks work as done', value=form.is_done)

        def submit():
            wip = int(wip_input.value) if wip_input.value not in (None, '') else None
            new_form = StatusForm(name=name_input.value or '', color=color_input.value or NEW_STATUS_COLOR,
                                  wip_limit=wip, is_done=bool(done_switch.value))
            if not new_form.is_valid:
                ui.notify('Status name is required', type='warning')
                return
            if node_id:
                editor.actions.update_status(node_id, new_form)
            else:
                editor.actions.add_status(new_form)
            dialog.close()
            on_done()

        with ui.row().classes('w-full justify-end gap-2'):
            ui.button('Cancel', on_click=dialog.close).props('flat')
            ui.button('Save', on_click=submit).props('color=primary')
    dialog.open()


@ui.page('/')
def main_page():
    store = WorkflowStore()
    saved_select = None
    state = {'theme_name': get_theme_name()}

    def on_save(snapshot):
        store.save(snapshot)
        ui.notify(f'Workflow "{snapshot["name"]}" saved', type='positive', position='bottom-right')
        if saved_select is not None:
            saved_select.set_options(store.list_workflows(), value=snapshot['name'])

    def on_back():
        ui.navigate.to('/')

    listeners = OverlayPointerListeners()
    editor = WorkflowEditor(load_template('default'), on_save=on_save, on_back=on_back, listeners=listeners)
    overlay = EditOverlay(editor, get_theme(state['theme_name']))

    # --- Context card ---

    context_card = ui.card().classes('fixed right-6 top-24 w-80 z-20 shadow-2xl flex flex-col gap-3')
    context_card.set_visibility(False)

    def refresh():
        overlay.update()
        render_context(editor.controller.selected_node_id, editor.controller.selected_connection_id)

    def render_context(node_id, connection_id):
        context_card.clear()
        node = editor.graph.get_node(node_id)
        conn = editor.graph.get_connection(connection_id)
        if node is None and conn is None:
            context_card.set_visibility(False)
            return

        with context_card:
            if node is not None:
                ui.label('Configure Status').classes('font-medium')
                if editor.graph.is_start(node.id):
                    ui.label('The START node has no settings.').classes('text-xs text-gray-400')
                else:
                    ui.input('Label', value=node.label,
                             on_change=lambda e: (editor.actions.rename_node(node.id, e.value), overlay.update()))
                    with ui.row().classes('gap-1'):
                        for preset in PRESET_COLORS:
                            ui.button(on_click=lambda p=preset: (editor.actions.recolor_node(node.id, p), overlay.update())) \
                                .props('round dense unelevated').style(f'background: {preset} !important; width: 24px; height: 24px')
                    with ui.row().classes('w-full justify-between'):
                        ui.button('Edit', icon='edit', on_click=lambda: open_status_dialog(editor, refresh, node.id)).props('flat')
                        ui.button('Delete', icon='delete', on_click=lambda: delete_node(node.id)).props('flat color=negative')
            else:
                source = editor.graph.get_node(conn.from_id)
                target = editor.graph.get_node(conn.to_id)
                ui.label('Transition').classes('font-medium')
                ui.label(f'{source.label if source else "?"} → {target.label if target else "?"}').classes('text-xs')
                ui.input('Transition Label', value=conn.label or '', placeholder='Optional label',
                         on_change=lambda e: (editor.actions.set_connection_label(conn.id, e.value), overlay.update()))
                delete_btn = ui.button('Delete Transition', icon='delete',
                                       on_click=lambda: delete_connection(conn.id)).props('flat color=negative')
                if editor.graph.is_start(conn.from_id):
                    delete_btn.disable()
                    delete_btn.tooltip('Start transition cannot be deleted. You can move it to another status.')
        context_card.set_visibility(True)

    def delete_node(node_id):
        if editor.actions.delete_node(node_id):
            editor.controller.clear_selection()
            refresh()

    def delete_connection(conn_id):
        if editor.actions.delete_connection(conn_id):
            editor.controller.clear_selection()
            refresh()

    handlers = setup_edit_handlers(editor, overlay, listeners, on_selection_change=render_context)

    # --- Header ---

    def apply_template(name):
        logger.info(f"Applying template '{name}'")
        editor.load(load_template(name))
        refresh()

    def open_saved(name):
        if not name or name == editor.name:
            return
        snapshot = store.load(name)
        if snapshot is None:
            ui.notify(f'Workflow "{name}" could not be opened', type='warning')
            return
        try:
            editor.load(snapshot, keep_name=False)
        except ValueError as e:
            logger.warning(f"Stored workflow '{name}' is malformed: {e}")
            ui.notify(f'Workflow "{name}" is damaged', type='negative')
            return
        name_input.set_value(editor.name)
        refresh()

    def toggle_theme():
        state['theme_name'] = 'light' if state['theme_name'] == 'dark' else 'dark'
        set_theme_name(state['theme_name'])
        overlay.set_theme(get_theme(state['theme_name']))

    with ui.header().classes('items-center justify-between px-6 py-2'):
        with ui.row().classes('items-center gap-2'):
            ui.button(icon='arrow_back', on_click=editor.back).props('flat round color=white')
            name_input = ui.input(value=editor.name, on_change=lambda e: editor.rename(e.value or '')) \
                .props('dense dark borderless').classes('text-lg')
        with ui.row().classes('items-center gap-2'):
            saved_select = ui.select(store.list_workflows(), label='Open saved', on_change=lambda e: open_saved(e.value)) \
                .props('dense dark options-dense clearable').classes('w-48')
            ui.select(list_templates(), value='default', on_change=lambda e: apply_template(e.value)) \
                .props('dense dark options-dense').tooltip('Start from template')
            ui.button(icon='contrast', on_click=toggle_theme).props('flat round color=white').tooltip('Toggle theme')
            ui.button('Save', on_click=lambda: editor.save()).props('color=white text-color=primary')

    # --- Toolbar ---

    def zoom(step):
        step()
        overlay.update()

    with ui.row().classes('items-center gap-1 px-6 py-2'):
        ui.button(icon='zoom_in', on_click=lambda: zoom(editor.zoom_in)).props('flat dense').tooltip('Zoom in')
        ui.button(icon='zoom_out', on_click=lambda: zoom(editor.zoom_out)).props('flat dense').tooltip('Zoom out')
        ui.button(icon='fit_screen', on_click=lambda: zoom(editor.fit_to_view)).props('flat dense').tooltip('Fit to view')
        ui.separator().props('vertical')
        ui.button('Add Status', icon='add', on_click=lambda: open_status_dialog(editor, refresh)).props('flat dense')

    # --- Canvas ---

    with ui.element('div').classes('w-full px-6'):
        overlay.setup(on_mouse=lambda e: handlers['handle_mouse'](e))
    overlay.on_wheel(lambda e: handlers['handle_wheel'](e))

    ui.keyboard(on_key=lambda e: handlers['handle_keyboard'](e))


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='FlowCanvas',
        port=8082,
        reload=not getattr(sys, 'frozen', False),
    )
