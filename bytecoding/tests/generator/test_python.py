"""Tests for the Python code emitter."""

from bytecoding.generator import compile_schema, parse
from bytecoding.generator.python import render, runtime


def render_text(text, **kwargs):
    return render(compile_schema(*parse(text)), **kwargs)


def exec_text(text, **names):
    gbl = globals().copy()
    gbl.update(names)
    exec(render_text(text, runtime_import="bytecoding.runtime"), gbl)
    return gbl


def describe_render():
    def batches_fixed_width_fields(expect):
        code = render_text(
            """
            struct Mixed {
                a: u32
                b: u64
                name: string
                c: bool
            }
        """
        )
        expect('_buf.extend(pack_fields("<IQ", self.a, self.b))' in code) == True
        expect('(_f_a, _f_b), _data = unpack_fields("<IQ", 12, _data)' in code) == True
        expect("STRING.encode(self.name, _buf)" in code) == True
        expect('(_f_c,), _data = unpack_fields("<?", 1, _data)' in code) == True

    def declares_container_codecs_once_per_field(expect):
        code = render_text("struct Bag { items: list<optional<string>> }")
        expect("_codec0 = ListCodec(OptionalCodec(STRING))" in code) == True
        expect(code.count(" = ListCodec(")) == 1
        expect("_codec0.encode(self.items, _buf)" in code) == True
        expect("_f_items, _data = _codec0.decode(_data)" in code) == True

    def uses_packed_codec_for_bool8(expect):
        code = render_text("struct Flags { bits: bool[8], more: bool[3] }")
        expect("_codec0 = PACKED_BOOLS" in code) == True
        expect("_codec1 = ArrayCodec(BOOL, 3)" in code) == True

    def writes_union_tables(expect):
        code = render_text('@codec(encoding_type = "u8")\nunion Cmd { Stop = 0\n Go(u8) = 7 }')
        expect("Cmd.Go = _Cmd_1" in code) == True
        expect("_tag_bytes = b'\\x07'" in code) == True
        expect("_tag, _data = U8.decode(_data)" in code) == True
        expect("    0: _Cmd_0," in code) == True

    def imports_installed_runtime(expect):
        code = render_text("struct A", runtime_import="bytecoding.runtime")
        expect("from bytecoding.runtime import (" in code) == True
        expect("sys.path" in code) == False

    def imports_local_runtime_through_sys_path(expect):
        code = render_text("struct A")
        expect("    from bytecoding_runtime import (" in code) == True
        expect("sys.path.insert(0, _runtime_path)" in code) == True
        expect("sys.path.remove(_runtime_path)" in code) == True

    def imports_hook_modules(expect):
        code = render_text('@codec(pre_enc_func = "my.hooks:stamp")\nstruct A { x: u8 }')
        expect("import my.hooks\n" in code) == True
        expect("_self = my.hooks.stamp(self)" in code) == True

    def only_generates_default_for_defaultable_records(expect):
        code = render_text(
            """
            union Choice { A = 0 }
            struct Holder { choice: Choice }
            struct Plain { x: u8 }
        """
        )
        expect(code.count("def default(cls)")) == 1


def describe_generated_code():
    def calls_hooks_from_imported_modules(expect):
        gen = exec_text('@codec(pre_enc_func = "copy:copy")\nstruct Point { x: i32, y: i32 }')
        Point = gen["Point"]

        expect(Point(x=1, y=-1).encoded()) == bytes([1, 0, 0, 0, 0xFF, 0xFF, 0xFF, 0xFF])

    def fails_decode_when_post_decode_hook_returns_none(expect):
        gen = exec_text(
            '@codec(post_dec_func = "reject")\nstruct Point { x: i32 }',
            reject=lambda value, data: None,
        )
        Point = gen["Point"]

        expect(Point.decode(Point(x=1).encoded())) == None

    def runs_hooks_in_order(expect):
        calls = []

        def pre_enc(value):
            calls.append("pre_enc")
            return value

        def post_enc(buf):
            calls.append("post_enc")

        def pre_dec(data):
            calls.append("pre_dec")
            return data

        def post_dec(value, data):
            calls.append("post_dec")
            return value, data

        gen = exec_text(
            """
            @codec(pre_enc_func = "pre_enc", post_enc_func = "post_enc")
            @codec(pre_dec_func = "pre_dec", post_dec_func = "post_dec")
            union Shape {
                @codec(value = 1)
                Circle { radius: u16 }
            }
        """,
            pre_enc=pre_enc,
            post_enc=post_enc,
            pre_dec=pre_dec,
            post_dec=post_dec,
        )
        Shape = gen["Shape"]

        encoded = Shape.Circle(radius=5).encoded()
        expect(Shape.decode(encoded)) == Shape.Circle(radius=5)
        expect(calls) == ["pre_enc", "post_enc", "pre_dec", "post_dec"]

    def references_types_declared_later(expect):
        gen = exec_text(
            """
            struct Outer { inner: Inner, many: list<Inner> }
            struct Inner { x: u8 }
        """
        )
        Outer = gen["Outer"]
        Inner = gen["Inner"]

        value = Outer(inner=Inner(x=1), many=[Inner(x=2)])
        expect(Outer.decode(value.encoded())) == value

    def allows_variant_fields_named_like_other_variants(expect):
        gen = exec_text("union U { @codec(value = 1) A\n @codec(value = 2) B { A: u8, y: u8 } }")
        U = gen["U"]

        value = U.B(A=3, y=4)
        expect(value.encoded()) == bytes([2, 0, 3, 4])
        expect(U.decode(value.encoded())) == value

    def keeps_hook_modules_visible_to_same_named_fields(expect):
        gen = exec_text('@codec(pre_dec_func = "builtins:bytes")\nstruct R { builtins: u8 }')
        R = gen["R"]

        expect(R.decode(R(builtins=1).encoded())) == R(builtins=1)

    def keeps_hook_names_visible_to_same_named_fields(expect):
        gen = exec_text(
            '@codec(post_dec_func = "check")\nstruct R { check: u8 }',
            check=lambda value, data: (value, data),
        )
        R = gen["R"]

        expect(R.decode(R(check=7).encoded())) == R(check=7)

    def keeps_codecs_apart_for_similar_names(expect):
        gen = exec_text(
            """
            union A { @codec(value = 1) B__C { x: list<u8> } }
            union A__B { @codec(value = 1) C { x: optional<u32> } }
            union P { @codec(value = 1) Q_R }
            union P_Q { @codec(value = 1) R { y: u8 } }
        """
        )
        A = gen["A"]
        A__B = gen["A__B"]
        P = gen["P"]
        P_Q = gen["P_Q"]

        expect(A.B__C(x=[1, 2]).encoded()) == bytes([1, 0, 2, 0, 0, 0, 0, 0, 0, 0, 1, 2])
        expect(A__B.C(x=5).encoded()) == bytes([1, 0, 1, 5, 0, 0, 0])
        expect(P.decode(P.Q_R().encoded())) == P.Q_R()
        expect(P_Q.decode(P_Q.R(y=9).encoded())) == P_Q.R(y=9)


def describe_runtime():
    def returns_runtime_sources(expect):
        files = runtime()
        expect(sorted(files)) == ["__init__.py", "coder.py", "primitives.py", "serialization.py"]
        expect("class Codable" in files["serialization.py"]) == True
