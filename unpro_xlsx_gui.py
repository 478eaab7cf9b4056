#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Excel工作簿解锁工具 - 图形界面
拖拽xlsx文件到窗口即可批量解锁，输出 name_unpro.xlsx
"""

import os
import queue
import re
import subprocess
import sys
import threading
from datetime import datetime
from pathlib import Path

import tkinter as tk
from tkinter import ttk, filedialog, messagebox

try:
    from tkinterdnd2 import TkinterDnD, DND_FILES
    HAS_DND = True
except ImportError:
    HAS_DND = False

from unpro import UnproConfig, ExcelProcessor

# ============================================================================
#                           设计系统 - 经典浅色主题
# ============================================================================

THEME = {
    'bg_main': '#e8e8e8',
    'bg_white': '#ffffff',
    'text_dark': '#000000',
    'text_title': '#1a3a6b',
    'text_link': '#0066cc',
    'text_muted': '#666666',
    'border': '#888888',
    'border_light': '#aaaaaa',
    'btn_bg': '#f0f0f0',
    'btn_hover': '#e0e0e0',
    'btn_active': '#d0d0d0',
}

SUPPORTED_EXTENSIONS = ExcelProcessor.SUPPORTED_EXTENSIONS

# tkinterdnd2 传来的列表: 含空格的路径用 {} 包裹
_DROP_TOKEN_RE = re.compile(r'\{([^}]*)\}|(\S+)')


def parse_drop_data(data: str) -> list:
    """把拖拽事件的 data 拆成路径列表"""
    return [braced or bare for braced, bare in _DROP_TOKEN_RE.findall(data)]


def format_size(size) -> str:
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.0f}{unit}"
        size /= 1024
    return f"{size:.1f}TB"


def open_folder(path: str):
    if sys.platform.startswith('win'):
        os.startfile(path)
    elif sys.platform == 'darwin':
        subprocess.run(['open', path], check=False)
    else:
        subprocess.run(['xdg-open', path], check=False)

# ============================================================================
#                           主应用
# ============================================================================

class UnproGUI:
    def __init__(self):
        if HAS_DND:
            self.root = TkinterDnD.Tk()
        else:
            self.root = tk.Tk()

        self.root.title("Excel工作簿解锁工具")
        self.root.geometry("720x600")
        self.root.minsize(640, 520)
        self.root.configure(bg=THEME['bg_main'])

        self.file_list = []
        self.items = {}
        self.processing = False
        self.msg_queue = queue.Queue()
        self.output_dir = None

        self.setup_ui()
        self.log("🔧 Excel工作簿解锁工具已启动")
        if not HAS_DND:
            self.log("未安装 tkinterdnd2，拖拽功能不可用")
        self.check_queue()

    def setup_ui(self):
        main = tk.Frame(self.root, bg=THEME['bg_main'], padx=15, pady=10)
        main.pack(fill=tk.BOTH, expand=True)

        tk.Label(main, text="Excel工作簿解锁工具",
                 fg=THEME['text_title'], bg=THEME['bg_main'],
                 font=('微软雅黑', 16, 'bold')).pack(pady=(0, 10))

        # ===== 拖拽区 =====
        self.drop_canvas = tk.Canvas(main, height=70, bg=THEME['bg_white'],
                                     highlightbackground=THEME['border'],
                                     highlightthickness=1, cursor='hand2')
        self.drop_canvas.pack(fill=tk.X, pady=(0, 10))
        self.drop_canvas.bind('<Configure>', lambda e: self._draw_drop_zone())
        self.drop_canvas.bind('<Button-1>', lambda e: self.add_files())

        if HAS_DND:
            self.drop_canvas.drop_target_register(DND_FILES)
            self.drop_canvas.dnd_bind('<<Drop>>', self.on_drop)

        # ===== 按钮行 =====
        btn_frame = tk.Frame(main, bg=THEME['bg_main'])
        btn_frame.pack(fill=tk.X, pady=(0, 10))
        for col in range(3):
            btn_frame.columnconfigure(col, weight=1)

        self._create_button(btn_frame, "📂  选择文件", self.add_files).grid(
            row=0, column=0, sticky='ew', padx=(0, 5))
        self._create_button(btn_frame, "🗑  清空列表", self.clear_files).grid(
            row=0, column=1, sticky='ew', padx=5)
        self._create_button(btn_frame, "🔓 开始解锁", self.start_process).grid(
            row=0, column=2, sticky='ew', padx=(5, 0))

        # ===== 文件列表 =====
        columns = ('filename', 'size', 'status')
        self.tree = ttk.Treeview(main, columns=columns, show='headings', height=8)
        self.tree.heading('filename', text='文件名')
        self.tree.heading('size', text='大小')
        self.tree.heading('status', text='状态')
        self.tree.column('filename', width=380)
        self.tree.column('size', width=80, anchor='center')
        self.tree.column('status', width=120, anchor='center')
        self.tree.pack(fill=tk.BOTH, expand=True, pady=(0, 10))

        # ===== 进度条 =====
        progress_frame = tk.Frame(main, bg=THEME['bg_main'])
        progress_frame.pack(fill=tk.X, pady=(0, 5))
        self.progress_var = tk.DoubleVar()
        ttk.Progressbar(progress_frame, variable=self.progress_var,
                        maximum=100).pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.status_label = tk.Label(progress_frame, text="就绪", width=12,
                                     fg=THEME['text_muted'], bg=THEME['bg_main'])
        self.status_label.pack(side=tk.RIGHT, padx=(10, 0))

        # ===== 日志 =====
        self.log_text = tk.Text(main, height=6, bg=THEME['bg_white'],
                                fg=THEME['text_dark'], font=('Consolas', 9), bd=1)
        self.log_text.pack(fill=tk.X, pady=(0, 10))

        self._create_button(main, "📁 打开输出文件夹", self.open_output_folder).pack(fill=tk.X)

    def _draw_drop_zone(self):
        """绘制虚线边框拖拽区域"""
        self.drop_canvas.delete('all')
        w = self.drop_canvas.winfo_width() or 680
        h = 70
        self.drop_canvas.create_rectangle(5, 5, w - 5, h - 5, outline=THEME['border_light'],
                                          dash=(6, 4), width=1)
        self.drop_canvas.create_text(w // 2, 28, text="拖拽xlsx文件到这里",
                                     fill=THEME['text_link'], font=('微软雅黑', 11))
        self.drop_canvas.create_text(w // 2, 48, text="或点击选择文件",
                                     fill=THEME['text_muted'], font=('微软雅黑', 9))

    def _create_button(self, parent, text, command):
        btn = tk.Button(parent, text=text, command=command,
                        bg=THEME['btn_bg'], fg=THEME['text_dark'],
                        activebackground=THEME['btn_active'],
                        bd=1, relief='raised', padx=15, pady=5, cursor='hand2')
        btn.bind('<Enter>', lambda e: btn.config(bg=THEME['btn_hover']))
        btn.bind('<Leave>', lambda e: btn.config(bg=THEME['btn_bg']))
        return btn

    def log(self, msg):
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.log_text.insert(tk.END, f"[{timestamp}] {msg}\n")
        self.log_text.see(tk.END)

    def on_drop(self, event):
        self.add_files_list(parse_drop_data(event.data))

    def add_files(self):
        files = filedialog.askopenfilenames(title="选择文件",
                                            filetypes=[("Excel", "*.xlsx")])
        if files:
            self.add_files_list(files)

    def add_files_list(self, files):
        added = 0
        for f in map(str, map(Path, files)):
            if not os.path.isfile(f) or f in self.items:
                continue
            if Path(f).suffix.lower() not in SUPPORTED_EXTENSIONS:
                continue
            self.file_list.append(f)
            self.items[f] = self.tree.insert('', tk.END, values=(
                Path(f).name, format_size(os.path.getsize(f)), '等待中'))
            added += 1

        if added:
            self.log(f"✅ 已添加 {added} 个文件")
            self.status_label.config(text=f"{len(self.file_list)} 个文件")

    def clear_files(self):
        if self.processing:
            return
        self.file_list.clear()
        self.items.clear()
        for item in self.tree.get_children():
            self.tree.delete(item)
        self.progress_var.set(0)
        self.status_label.config(text="就绪")
        self.log("🗑 列表已清空")

    def start_process(self):
        if not self.file_list:
            messagebox.showwarning("提示", "请先添加文件")
            return
        if self.processing:
            return

        self.processing = True
        self.log("⚡ 开始处理...")
        self.status_label.config(text="处理中...")
        threading.Thread(target=self._process_thread, args=(list(self.file_list),),
                         daemon=True).start()

    def _process_thread(self, files):
        total = len(files)
        success_count = 0

        def progress(current, steps, message):
            self.msg_queue.put(('log', f"  [{current}/{steps}] {message}"))

        try:
            for i, fp in enumerate(files):
                path = Path(fp)
                item_id = self.items[fp]
                self.msg_queue.put(('tree_update', (item_id, '⏳ 处理中...')))

                try:
                    # 工作目录和输出都放在输入文件所在目录
                    config = UnproConfig(work_root=str(path.parent))
                    result = ExcelProcessor(config).process(path, progress_callback=progress)

                    if result.success:
                        success_count += 1
                        self.msg_queue.put(('tree_update', (item_id, '✅ 完成')))
                        self.msg_queue.put(('log', f"✅ {path.name}: {result.message}"))
                        self.msg_queue.put(('output_dir', str(Path(result.output_path).resolve().parent)))
                    else:
                        self.msg_queue.put(('tree_update', (item_id, '❌ 失败')))
                        self.msg_queue.put(('log', f"❌ {path.name}: {result.message}"))
                except Exception as e:
                    self.msg_queue.put(('tree_update', (item_id, '❌ 错误')))
                    self.msg_queue.put(('log', f"❌ {path.name}: {e}"))

                self.msg_queue.put(('progress', (i + 1) / total * 100))
        finally:
            self.msg_queue.put(('log', f"🎉 完成! 成功 {success_count}/{total}"))
            self.msg_queue.put(('done', (success_count, total)))

    def check_queue(self):
        try:
            while True:
                msg_type, data = self.msg_queue.get_nowait()
                if msg_type == 'log':
                    self.log(data)
                elif msg_type == 'progress':
                    self.progress_var.set(data)
                elif msg_type == 'tree_update':
                    item_id, status = data
                    values = list(self.tree.item(item_id, 'values'))
                    values[2] = status
                    self.tree.item(item_id, values=values)
                elif msg_type == 'output_dir':
                    self.output_dir = data
                elif msg_type == 'done':
                    self.processing = False
                    success_count, total = data
                    self.status_label.config(text=f"完成 ({success_count}/{total})")
        except queue.Empty:
            pass
        self.root.after(100, self.check_queue)

    def open_output_folder(self):
        if self.output_dir and os.path.exists(self.output_dir):
            open_folder(self.output_dir)
        else:
            messagebox.showinfo("提示", "请先处理文件")

    def run(self):
        self.root.mainloop()


def main():
    app = UnproGUI()
    app.run()


if __name__ == '__main__':
    main()
