"""Rendering helpers shared by the operations"""

from rich.table import Table


def show_json(ctx, data, title: str = None) -> None:
    if title:
        ctx.console.print(f"\n[bold]{title}[/bold]\n")
    ctx.console.print_json(data=data)


def show_table(ctx, title: str, columns, rows) -> None:
    table = Table(title=title)
    for i, column in enumerate(columns):
        table.add_column(column, style="cyan" if i == 0 else "magenta")
    for row in rows:
        table.add_row(*[str(cell) for cell in row])
    ctx.console.print(table)


def show_list(ctx, title: str, items, empty: str = "None found.") -> None:
    ctx.console.print(f"\n[bold]{title}[/bold]\n")
    items = list(items)
    if not items:
        ctx.console.print(f"  {empty}")
        return
    for item in items:
        ctx.console.print(f"  {item}")
