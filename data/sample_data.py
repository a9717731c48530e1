"""Generate a deterministic sample roster and classroom for the seating planner."""

import pandas as pd
import random
import os

SAMPLE_FIRST_NAMES = [
    "Ava", "Ben", "Chloe", "Diego", "Emma", "Farah", "Gabe", "Hana",
    "Isaac", "Jade", "Kofi", "Lena", "Mateo", "Nora", "Omar", "Priya",
    "Quinn", "Rosa", "Sami", "Tess", "Uma", "Victor", "Wren", "Yusuf",
]
SAMPLE_LAST_NAMES = [
    "Adams", "Baker", "Chen", "Diaz", "Evans", "Fischer", "Garcia", "Hughes",
    "Ito", "Jones", "Khan", "Lopez", "Martin", "Nguyen", "Okafor", "Patel",
]


def generate_students_df(count: int = 24) -> pd.DataFrame:
    """Roster with First Name / Last Name / Student ID columns."""
    random.seed(42)
    rows = []
    for index in range(count):
        rows.append({
            "First Name": SAMPLE_FIRST_NAMES[index % len(SAMPLE_FIRST_NAMES)],
            "Last Name": random.choice(SAMPLE_LAST_NAMES),
            "Student ID": f"S{1001 + index}",
        })
    return pd.DataFrame(rows)


def generate_layout_df(rows: int = 6, cols: int = 7) -> pd.DataFrame:
    """Classroom grid: teacher desk front-centre, door at the back-right corner,
    an empty front row except beside the desk, and a centre aisle."""
    grid = []
    aisle = cols // 2
    for r in range(rows):
        line = []
        for c in range(cols):
            if r == 0:
                line.append("D" if c in (aisle - 1, aisle) else "")
            elif c == aisle and cols > 3:
                line.append("")
            else:
                line.append("S")
        grid.append(line)
    grid[rows - 1][cols - 1] = "X"
    return pd.DataFrame(grid)


def generate_sample_csvs(output_dir: str):
    """Write sample CSV files to the given directory."""
    os.makedirs(output_dir, exist_ok=True)
    generate_students_df().to_csv(os.path.join(output_dir, "students.csv"), index=False)
    generate_layout_df().to_csv(os.path.join(output_dir, "layout.csv"), index=False, header=False)


def generate_sample_excel(output_dir: str):
    """Write a single Excel file with Students and Layout sheets."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "sample_classroom.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        generate_students_df().to_excel(writer, sheet_name="Students", index=False)
        generate_layout_df().to_excel(writer, sheet_name="Layout", index=False, header=False)


if __name__ == "__main__":
    out = os.path.join(os.path.dirname(__file__), "..", "sample_files")
    generate_sample_csvs(out)
    generate_sample_excel(out)
    print("Sample CSV and Excel files generated in sample_files/")
