"""Canned responses served when the vendor reports exhausted credit.

The routes fall back to these so the IDE keeps working in a degraded, offline
mode. Choices are keyword driven; nothing here talks to the network.
"""

import re

# ── Chat ─────────────────────────────────────────────────────────

SWORD_ANSWER = """\
Here's how to create a custom sword with the new DataComponent system in NeoForge 1.21.5:

```java
public class CustomSword {
    public static final DeferredRegister<Item> ITEMS =
        DeferredRegister.create(BuiltInRegistries.ITEM, "yourmodid");

    public static final RegistryObject<Item> RUBY_SWORD = ITEMS.register("ruby_sword",
        () -> new Item(new Item.Properties()
            .sword()
            .durability(1250)
            .add(DataComponents.WEAPON, new Weapon(3, 5f))
        ));
}
```

Notice how in 1.21.5 we no longer extend SwordItem. Instead:
1. We use a standard Item with the .sword() property
2. We add the WEAPON DataComponent
3. We configure durability and other properties directly"""

COMPONENT_ANSWER = """\
The DataComponent system in NeoForge 1.21.5 replaces the old inheritance-based approach for items. \
Instead of extending classes like SwordItem, PickaxeItem, or ArmorItem, you now use regular Items with components.

**WEAPON Component** replaces SwordItem:

```java
.add(DataComponents.WEAPON, new Weapon(3, 5f))
```

**TOOL Component** replaces DiggerItem, PickaxeItem, etc.

**ARMOR Component** replaces ArmorItem:

```java
.add(DataComponents.ARMOR, armor)
```

The advantage of this approach is flexibility: you can mix and match components as needed."""

ERROR_ANSWER = """\
Based on your error description, I'd look at a few common issues in NeoForge 1.21.5:

1. Are you still using old item classes? Extending SwordItem, ArmorItem, or DiggerItem no longer works. \
Use a regular Item with components instead.

2. Check your registry setup and make sure you're using DeferredRegister and RegistryObject correctly:

```java
public static final DeferredRegister<Item> ITEMS =
    DeferredRegister.create(BuiltInRegistries.ITEM, "yourmodid");
```

3. If you're seeing missing textures or models, check that your JSON files match the registered names exactly.

To fix the error properly, could you share the specific error message and the code that's causing it?"""

GENERAL_ANSWER = """\
Thank you for your message about Minecraft modding with NeoForge 1.21.5.

Some key things to remember when developing for 1.21.5:

1. Always use DeferredRegister + RegistryObject for registrations
2. Use the DataComponent system instead of extending specialized item classes
3. Handle block entity removal with BlockEntity#preRemoveSideEffects and BlockBehaviour#affectNeighborsAfterRemoval
4. Use Item Properties builders like .sword(), .axe(), .pickaxe() for item setup

What specific aspect of Minecraft modding are you working on right now?"""

_CHAT_RULES = [
    (("sword", "weapon"), SWORD_ANSWER),
    (("datacomponent", "component"), COMPONENT_ANSWER),
    (("error", "fix"), ERROR_ANSWER),
]


def chat_fallback(messages: list[dict]) -> str:
    """Pick a canned answer for the latest user message."""
    last_user = next(
        (m.get("content", "") for m in reversed(messages) if m.get("role") == "user"),
        "",
    )
    return _pick(str(last_user), _CHAT_RULES, GENERAL_ANSWER)


# ── Code generation ──────────────────────────────────────────────

SWORD_TEMPLATE = """\
package com.example.mod.item;

import net.minecraft.core.component.DataComponents;
import net.minecraft.core.registries.BuiltInRegistries;
import net.minecraft.world.item.Item;
import net.minecraft.world.item.component.Weapon;
import net.neoforged.neoforge.registries.DeferredRegister;
import net.neoforged.neoforge.registries.RegistryObject;

public class ModItems {
    public static final DeferredRegister<Item> ITEMS =
        DeferredRegister.create(BuiltInRegistries.ITEM, "examplemod");

    public static final RegistryObject<Item> CUSTOM_SWORD = ITEMS.register("custom_sword",
        () -> new Item(new Item.Properties()
            .sword()
            .durability(1250)
            .add(DataComponents.WEAPON, new Weapon(3, 5f))));
}"""

BLOCK_TEMPLATE = """\
package com.example.mod.block;

import net.minecraft.core.registries.BuiltInRegistries;
import net.minecraft.world.level.block.Block;
import net.minecraft.world.level.block.SoundType;
import net.minecraft.world.level.block.state.BlockBehaviour;
import net.neoforged.neoforge.registries.DeferredRegister;
import net.neoforged.neoforge.registries.RegistryObject;

public class ModBlocks {
    public static final DeferredRegister<Block> BLOCKS =
        DeferredRegister.create(BuiltInRegistries.BLOCK, "examplemod");

    public static final RegistryObject<Block> CUSTOM_ORE = BLOCKS.register("custom_ore",
        () -> new Block(BlockBehaviour.Properties.of()
            .strength(3.0F, 3.0F)
            .requiresCorrectToolForDrops()
            .sound(SoundType.STONE)));
}"""

ITEM_TEMPLATE = """\
package com.example.mod.item;

import net.minecraft.core.registries.BuiltInRegistries;
import net.minecraft.world.item.Item;
import net.minecraft.world.item.Rarity;
import net.neoforged.neoforge.registries.DeferredRegister;
import net.neoforged.neoforge.registries.RegistryObject;

public class ModItems {
    public static final DeferredRegister<Item> ITEMS =
        DeferredRegister.create(BuiltInRegistries.ITEM, "examplemod");

    public static final RegistryObject<Item> CUSTOM_ITEM = ITEMS.register("custom_item",
        () -> new Item(new Item.Properties()
            .stacksTo(16)
            .rarity(Rarity.UNCOMMON)));
}"""

MOD_TEMPLATE = """\
package com.example.mod;

import net.neoforged.bus.api.IEventBus;
import net.neoforged.fml.common.Mod;
import net.neoforged.fml.event.lifecycle.FMLCommonSetupEvent;

@Mod(ExampleMod.MODID)
public class ExampleMod {
    public static final String MODID = "examplemod";

    public ExampleMod(IEventBus modEventBus) {
        modEventBus.addListener(this::commonSetup);
    }

    private void commonSetup(final FMLCommonSetupEvent event) {
        // Common setup goes here
    }
}"""

_CODE_RULES = [
    (("sword", "weapon"), SWORD_TEMPLATE),
    (("block", "ore"), BLOCK_TEMPLATE),
    (("item",), ITEM_TEMPLATE),
]


def code_fallback(prompt: str) -> str:
    """Pick a Java template matching the generation prompt."""
    return _pick(prompt, _CODE_RULES, MOD_TEMPLATE)


# ── Error fixing ─────────────────────────────────────────────────

_REMOVED_ITEM_CLASSES = r"(?:SwordItem|DiggerItem|PickaxeItem|AxeItem|ShovelItem|HoeItem|ArmorItem|TieredItem)"

# Applied in order to the submitted code.
_FIX_RULES = [
    # import net.minecraft.world.item.SwordItem; -> import ...Item;
    (re.compile(rf"(import\s+net\.minecraft\.world\.item\.){_REMOVED_ITEM_CLASSES}\s*;"), r"\1Item;"),
    (re.compile(rf"\bextends\s+{_REMOVED_ITEM_CLASSES}\b"), "extends Item"),
    # new SwordItem(Tiers.IRON, 3, -2.4F, new Item.Properties())
    (re.compile(rf"\bnew\s+{_REMOVED_ITEM_CLASSES}\s*\((?:[^()]|\([^()]*\))*\)"), "new Item(new Item.Properties())"),
    # super(Tiers.IRON, 3, -2.4F, properties) -> super(properties)
    (re.compile(r"\bsuper\(\s*Tiers\.\w+\s*,\s*-?[\d.]+[fFdD]?\s*,\s*-?[\d.]+[fFdD]?\s*,\s*"), "super("),
    (re.compile(r"\bnet\.minecraftforge\b"), "net.neoforged"),
]


def fix_fallback(code: str) -> str:
    """Rewrite pre-1.21.5 idioms in ``code`` without calling the model."""
    for pattern, replacement in _FIX_RULES:
        code = pattern.sub(replacement, code)
    return _dedupe_imports(code)


def _dedupe_imports(code: str) -> str:
    seen = set()
    lines = []
    for line in code.split("\n"):
        stripped = line.strip()
        if stripped.startswith("import ") and stripped.endswith(";"):
            if stripped in seen:
                continue
            seen.add(stripped)
        lines.append(line)
    return "\n".join(lines)


def _pick(text: str, rules, default: str) -> str:
    lowered = text.lower()
    for keywords, answer in rules:
        # Keywords match at a word start so "more" does not count as "ore".
        if any(re.search(rf"\b{k}", lowered) for k in keywords):
            return answer
    return default
